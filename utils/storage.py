import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from settings import CREDENTIALS_FILE

logger = logging.getLogger(__name__)


class CredentialStore:
    """Key/value credential storage backed by a JSON file with owner-only permissions

    The set of keys is not fixed: login writes ``token`` and ``user_session``
    plus whatever fields the verification endpoint returns.
    """

    def __init__(self, credentials_file: Optional[str] = None):
        self.path = Path(credentials_file if credentials_file else CREDENTIALS_FILE)
        self._ensure_secure_directory()

    def _ensure_secure_directory(self):
        """Create parent directory with secure permissions"""
        parent_dir = self.path.parent
        if not parent_dir.exists():
            parent_dir.mkdir(parents=True, exist_ok=True)
            # Set directory permissions to 700 on Unix-like systems
            if platform.system() != "Windows":
                os.chmod(parent_dir, 0o700)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load credentials from {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed credentials file {self.path}")
            return {}
        return data

    def _write(self, data: Dict[str, Any]):
        self._ensure_secure_directory()
        self.path.write_text(json.dumps(data, indent=2))

        # Set file permissions to 600 on Unix-like systems
        if platform.system() != "Windows":
            os.chmod(self.path, 0o600)

    def reset(self):
        """Drop every stored field, leaving an empty store"""
        self._write({})
        logger.debug(f"Reset credentials in {self.path}")

    def set(self, name: str, value: Any):
        """Insert or replace one named field"""
        data = self._read()
        data[name] = value
        self._write(data)
        logger.debug(f"Stored credential field '{name}'")

    def get(self, name: str, default: Any = None) -> Any:
        return self._read().get(name, default)

    def all(self) -> Dict[str, Any]:
        return self._read()

    def clear(self):
        """Remove the credentials file"""
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Removed credentials file {self.path}")

    def is_authenticated(self) -> bool:
        return bool(self.get("token"))

    @property
    def credentials_file(self) -> Path:
        return self.path
