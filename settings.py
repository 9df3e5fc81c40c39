from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("DROPBIN_LOG_LEVEL", "warning")
DEBUG_LOG_FILE = config.get("DROPBIN_DEBUG_LOG_FILE", "dropbin_debug.log")

# Loopback listener configuration
# The redirect URI built from these values must be registered on
# https://www.dropbox.com/developers/apps for the app key in use.
LOOPBACK_HOST = config.get("DROPBIN_LOOPBACK_HOST", "127.0.0.1")
LOOPBACK_PORT = config.get("DROPBIN_LOOPBACK_PORT", 52475)
REDIRECT_PATH = "/authorize"
TOKEN_PATH = "/token"
URL_WITH_FRAGMENT_PARAM = "url_with_fragment"

# Seconds to wait for each browser redirect; 0 waits forever
REDIRECT_TIMEOUT = config.get("DROPBIN_REDIRECT_TIMEOUT", 0.0)

# Optional replacement for the bundled trampoline page
TRAMPOLINE_PAGE = config.get("DROPBIN_TRAMPOLINE_PAGE", "")

# Persistence
SETTINGS_FILE = config.get("DROPBIN_SETTINGS_FILE", "~/.dropbin/settings.json")
KEYRING_SERVICE = config.get("DROPBIN_KEYRING_SERVICE", "dropbin")

# Dropbox app registration page shown when prompting for an API key
APP_CONSOLE_URL = "https://www.dropbox.com/developers/apps"
