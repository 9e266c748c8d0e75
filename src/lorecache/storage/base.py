"""Abstract base class for key-value stores and factory function."""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStoreBase(ABC):
    """Common interface for local string-keyed storage backends.

    Backends raise StorageReadFailure / StorageWriteFailure; callers go
    through CacheStore, which turns those into misses and warnings.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored text, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store text under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored."""


def get_store(config: dict[str, Any]) -> KeyValueStoreBase:
    """Factory: return the right store backend based on config."""
    backend = config.get("storage_backend", "json")

    if backend == "json":
        from .file import JsonFileStore
        return JsonFileStore(config["storage_path"])
    elif backend == "memory":
        from .memory import MemoryStore
        return MemoryStore()
    else:
        raise ValueError(f"Unknown storage_backend: {backend}")
