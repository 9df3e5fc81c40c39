"""Drive credentials kept in the operating system's secret store"""

import logging
from typing import Optional

import keyring
from keyring.errors import PasswordDeleteError

from settings import KEYRING_SERVICE

logger = logging.getLogger(__name__)

ACCESS_TOKEN_SUFFIX = "AccessToken"
REFRESH_TOKEN_SUFFIX = "RefreshToken"


def get_access_token_name(drive_name: str) -> str:
    """Credential name of a drive's access token, e.g. ``Work_AccessToken``"""
    return f"{drive_name}_{ACCESS_TOKEN_SUFFIX}"


def get_refresh_token_name(drive_name: str) -> str:
    """Credential name of a drive's refresh token, e.g. ``Work_RefreshToken``"""
    return f"{drive_name}_{REFRESH_TOKEN_SUFFIX}"


class KeyringSecretStore:
    """Named secrets stored through ``keyring`` under one service name"""

    def __init__(self, service: Optional[str] = None):
        self.service = service or KEYRING_SERVICE

    def read_secret(self, name: str) -> Optional[str]:
        """Return the secret, or None when it is absent or empty"""
        value = keyring.get_password(self.service, name)
        return value or None

    def write_secret(self, name: str, value: str):
        keyring.set_password(self.service, name, value)
        logger.debug(f"Stored credential {name} in keyring service {self.service}")

    def delete_secret(self, name: str) -> bool:
        """Remove a secret

        Returns:
            True if a secret was removed, False if none existed
        """
        try:
            keyring.delete_password(self.service, name)
        except PasswordDeleteError:
            return False
        return True
