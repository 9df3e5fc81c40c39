import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from settings import SETTINGS_FILE

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Key names written by earlier releases
LEGACY_KEYS = {
    "ApiKey": "api_key",
    "AccessTokenExpiration": "access_token_expiration",
    "AccountId": "account_id",
    "Uid": "user_id",
    "Scope": "scope",
}


class SettingsStore:
    """Local key/value settings kept in a JSON file readable only by the owner"""

    def __init__(self, settings_file: Optional[str] = None):
        self.settings_path = Path(settings_file if settings_file else SETTINGS_FILE)
        self._values: Dict[str, Any] = {}
        self._ensure_secure_directory()
        self.reload()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.settings_path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def set(self, name: str, value: Any):
        """Set a value in memory; call save() to persist it"""
        self._values[name] = value

    def save(self):
        """Write all values to disk"""
        self.settings_path.write_text(json.dumps(self._values, indent=2))

        # Set file permissions to 600 on Unix-like systems
        if platform.system() != "Windows":
            os.chmod(self.settings_path, 0o600)
        logger.debug(f"Saved settings to {self.settings_path}")

    def reload(self):
        """Discard in-memory values and read the file again"""
        if not self.settings_path.exists():
            self._values = {}
            return

        try:
            data = json.loads(self.settings_path.read_text())
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.settings_path}: {e}")
            self._values = {}
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.settings_path}: expected an object")
            data = {}
        self._values = data

    def upgrade(self) -> bool:
        """Migrate settings written by an earlier release

        Runs once; later calls find the current schema version and do nothing.

        Returns:
            True if the file was migrated
        """
        if self._values.get("schema_version", 0) >= SCHEMA_VERSION:
            return False

        for old_name, new_name in LEGACY_KEYS.items():
            if old_name in self._values:
                value = self._values.pop(old_name)
                self._values.setdefault(new_name, value)

        self._values["schema_version"] = SCHEMA_VERSION
        self.save()
        logger.info(f"Upgraded settings in {self.settings_path} to schema version {SCHEMA_VERSION}")
        return True

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def settings_file(self) -> Path:
        """Get the settings file path"""
        return self.settings_path
