"""Logging setup and a Rich console that mirrors its output to the debug log.

When debug mode is enabled every log record and every line printed to the
console is appended to the debug log file.
"""

import logging
import io
import os
import re
from typing import Optional
from rich.console import Console as RichConsole

ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


class DebugCapturingConsole(RichConsole):
    """
    Rich Console that also logs a plain-text copy of everything it prints.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """
        Render the objects to plain text without Rich markup.

        Args:
            *objects: Objects to render
            **kwargs: Keyword arguments from print call

        Returns:
            Plain text string without Rich formatting
        """
        string_buffer = io.StringIO()
        temp_console = RichConsole(
            file=string_buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False
        )
        temp_console.print(*objects, **kwargs)

        return ANSI_ESCAPE.sub('', string_buffer.getvalue()).rstrip()


def create_debug_console(debug_enabled: bool = False,
                        debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Create appropriate console instance based on debug mode.

    Args:
        debug_enabled: Whether debug mode is enabled
        debug_logger: Logger instance for debug output

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    else:
        return RichConsole()


def setup_logging(level: str = "warning"):
    """Configure the root logger for normal (non-debug) runs"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(levelname)s - %(name)s - %(message)s',
    )


def setup_debug_logging(log_file: str = "dropbin_debug.log") -> logging.Logger:
    """
    Send all log records to the debug log file and stderr.

    Args:
        log_file: Path to debug log file (appended to)

    Returns:
        Logger that receives captured console output
    """
    log_file = os.path.abspath(log_file)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Dedicated logger for Rich console output capture
    console_logger = logging.getLogger("debug_console")
    console_logger.setLevel(logging.DEBUG)
    for handler in console_logger.handlers[:]:
        console_logger.removeHandler(handler)

    capture_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    capture_handler.setLevel(logging.DEBUG)
    capture_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    console_logger.addHandler(capture_handler)

    # Prevent propagation to avoid duplicate logs
    console_logger.propagate = False

    root_logger.info(f"Debug logging enabled - appending to {log_file}")
    return console_logger
