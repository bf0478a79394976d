"""Local persistent key-value store backed by a JSON file."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from neonest.services.storage import KeyValueStore

_PREFIX = "nn_"

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileStore(KeyValueStore):
    """Keeps every key in one JSON document on disk."""

    path: Path

    def get(self, key: str) -> str | None:
        """Return the stored value for a key."""
        return self._read().get(_PREFIX + key)

    def set(self, key: str, value: str) -> None:
        """Store a value and flush the file."""
        data = self._read()
        data[_PREFIX + key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        """Remove a key from the file."""
        data = self._read()
        if data.pop(_PREFIX + key, None) is not None:
            self._write(data)

    def list_keys(self, prefix: str = "") -> list[str]:
        """Return keys starting with a prefix."""
        keys = [key[len(_PREFIX) :] for key in self._read() if key.startswith(_PREFIX)]
        return [key for key in keys if key.startswith(prefix)]

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            _logger.warning(
                "Storage file %s is unreadable, starting empty", self.path, exc_info=True
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            Path(tmp_name).replace(self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
