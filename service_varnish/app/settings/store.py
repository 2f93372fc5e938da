"""
JSON file backed settings store.
"""

import json
import os
import tempfile
from typing import Any, Dict

from pydantic import ValidationError

from shared.errors import StorageError, StorageErrorKind
from shared.logging import get_logger

from .models import CacheConfig


class SettingsStore:
    """Reads and writes the cache settings document.

    ``load`` never fails: a missing, unreadable or corrupt document yields the
    defaults, and individual invalid fields fall back to their own default.
    ``save`` replaces the document atomically.
    """

    def __init__(self, path: str):
        self.path = path
        self.logger = get_logger("varnish.settings_store")

    def load(self) -> CacheConfig:
        """Return the persisted document merged over defaults."""
        raw = self._read_raw()
        if not raw:
            return CacheConfig()

        try:
            return CacheConfig.model_validate(raw)
        except ValidationError as exc:
            invalid = {str(error["loc"][0]) for error in exc.errors() if error.get("loc")}
            self.logger.warning(
                "Invalid settings fields, using defaults for them",
                path=self.path,
                fields=sorted(invalid),
            )

        cleaned = {key: value for key, value in raw.items() if key not in invalid}
        try:
            return CacheConfig.model_validate(cleaned)
        except ValidationError:
            return CacheConfig()

    def save(self, config: CacheConfig) -> None:
        """Persist ``config``; raises ``StorageError`` when it cannot be written."""
        directory = os.path.dirname(self.path) or "."
        payload = json.dumps(config.to_document(), indent=4)

        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".settings-", suffix=".tmp")
        except PermissionError as exc:
            raise self._storage_error(StorageErrorKind.PERMISSION_DENIED, exc)
        except OSError as exc:
            raise self._storage_error(StorageErrorKind.IO_ERROR, exc)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            kind = StorageErrorKind.PERMISSION_DENIED if isinstance(exc, PermissionError) else StorageErrorKind.IO_ERROR
            raise self._storage_error(kind, exc)

        self.logger.info("Settings saved", path=self.path)

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def _read_raw(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (ValueError, OSError) as exc:
            self.logger.warning("Settings file unreadable, using defaults", path=self.path, error=str(exc))
            return {}

        if not isinstance(data, dict):
            self.logger.warning("Settings file is not a JSON object, using defaults", path=self.path)
            return {}
        return data

    def _storage_error(self, kind: StorageErrorKind, exc: OSError) -> StorageError:
        self.logger.error("Settings write failed", path=self.path, kind=kind.value, error=str(exc))
        return StorageError(kind, f"Unable to write settings to {self.path}: {exc.strerror or exc}")
