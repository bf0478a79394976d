"""Key-value storage abstractions."""

from typing import Protocol


class KeyValueStore(Protocol):
    """String key-value store holding JSON-serialized values."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is unknown."""

    def set(self, key: str, value: str) -> None:
        """Store a value under a key."""

    def delete(self, key: str) -> None:
        """Remove a key if present."""

    def list_keys(self, prefix: str = "") -> list[str]:
        """Return keys starting with a prefix."""


class RemoteKeyValueRepository(Protocol):
    """Remote persistence for a device's key-value pairs."""

    def fetch(self, device_id: str, key: str) -> str | None:
        """Return a remote value, if any."""

    def store(self, device_id: str, key: str, value: str) -> None:
        """Insert or replace a remote value."""

    def remove(self, device_id: str, key: str) -> None:
        """Delete a remote value."""


class InMemoryStore(KeyValueStore):
    """Process-local store, used for tests and ephemeral sessions."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        """Return the stored value."""
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        self._values[key] = value

    def delete(self, key: str) -> None:
        """Remove a key."""
        self._values.pop(key, None)

    def list_keys(self, prefix: str = "") -> list[str]:
        """Return matching keys in insertion order."""
        return [key for key in self._values if key.startswith(prefix)]
