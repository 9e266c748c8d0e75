"""JSON file store: every key lives in one JSON object on disk."""

import json
import os
from pathlib import Path

from ..errors import StorageReadFailure, StorageWriteFailure
from .base import KeyValueStoreBase


class JsonFileStore(KeyValueStoreBase):
    """Persistent store backed by a single JSON file.

    Every ``set`` re-reads the file and rewrites it atomically, so two
    processes sharing a file behave last-writer-wins per write.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self, key: str) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadFailure(key, f"cannot read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageReadFailure(key, f"corrupt store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageReadFailure(key, f"corrupt store file {self.path}: not an object")
        return data

    def _save(self, key: str, data: dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageWriteFailure(key, f"cannot write {self.path}: {e}") from e

    def get(self, key: str) -> str | None:
        value = self._load(key).get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._load(key)
        except StorageReadFailure as e:
            raise StorageWriteFailure(key, e.reason) from e
        data[key] = value
        self._save(key, data)

    def delete(self, key: str) -> None:
        try:
            data = self._load(key)
        except StorageReadFailure as e:
            raise StorageWriteFailure(key, e.reason) from e
        if data.pop(key, None) is not None:
            self._save(key, data)

    def keys(self) -> list[str]:
        return list(self._load("*"))
