"""CLI package for Dropbin

This package provides the command-line interface for authorizing Dropbox
drives and inspecting their stored credentials.
"""

from cli.main import main

__all__ = [
    "main",
]
