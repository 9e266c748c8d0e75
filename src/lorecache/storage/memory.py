"""In-process store, used for tests and throwaway sessions."""

from ..errors import StorageReadFailure, StorageWriteFailure
from .base import KeyValueStoreBase


class MemoryStore(KeyValueStoreBase):
    """Dict-backed store with an optional size quota.

    ``quota`` caps the total number of characters held (keys + values);
    ``disabled`` makes every call fail, like a browser with storage turned off.
    """

    def __init__(self, quota: int | None = None, disabled: bool = False):
        self._data: dict[str, str] = {}
        self.quota = quota
        self.disabled = disabled

    def _used(self, excluding: str | None = None) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items() if k != excluding)

    def get(self, key: str) -> str | None:
        if self.disabled:
            raise StorageReadFailure(key, "storage is disabled")
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.disabled:
            raise StorageWriteFailure(key, "storage is disabled")
        if self.quota is not None and self._used(excluding=key) + len(key) + len(value) > self.quota:
            raise StorageWriteFailure(key, "storage quota exceeded")
        self._data[key] = value

    def delete(self, key: str) -> None:
        if self.disabled:
            raise StorageWriteFailure(key, "storage is disabled")
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        if self.disabled:
            raise StorageReadFailure("*", "storage is disabled")
        return list(self._data)
