"""
Loopback OAuth constants
"""
from settings import (
    LOOPBACK_HOST,
    LOOPBACK_PORT,
    REDIRECT_PATH,
    TOKEN_PATH,
    URL_WITH_FRAGMENT_PARAM,
)

# Listener root, e.g. http://127.0.0.1:52475/
LOOPBACK_ROOT = f"http://{LOOPBACK_HOST}:{LOOPBACK_PORT}"

# Receives the OAuth 2 redirect from Dropbox (must be registered with the app)
REDIRECT_URI = f"{LOOPBACK_ROOT}{REDIRECT_PATH}"

# Receives the full redirect URL forwarded by the trampoline page script
JS_REDIRECT_URI = f"{LOOPBACK_ROOT}{TOKEN_PATH}"

# Session key the Dropbox SDK stores its CSRF token under
CSRF_TOKEN_SESSION_KEY = "dropbox-auth-csrf-token"

__all__ = [
    "LOOPBACK_HOST",
    "LOOPBACK_PORT",
    "REDIRECT_PATH",
    "TOKEN_PATH",
    "URL_WITH_FRAGMENT_PARAM",
    "LOOPBACK_ROOT",
    "REDIRECT_URI",
    "JS_REDIRECT_URI",
    "CSRF_TOKEN_SESSION_KEY",
]
