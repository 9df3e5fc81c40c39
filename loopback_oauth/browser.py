"""Default browser launcher"""

import logging
import webbrowser

from .errors import BrowserLaunchError

logger = logging.getLogger(__name__)


def launch_default_browser(uri: str) -> bool:
    """Open ``uri`` in the system's default browser

    Args:
        uri: URL to open

    Returns:
        True if a browser was launched

    Raises:
        BrowserLaunchError: If no browser could be launched
    """
    try:
        opened = webbrowser.open(uri)
    except webbrowser.Error as e:
        raise BrowserLaunchError(f"An unexpected error occurred while opening the browser: {e}") from e

    if not opened:
        raise BrowserLaunchError("No runnable browser found")
    return True
