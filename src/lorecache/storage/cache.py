"""Non-fatal access to a key-value store.

Reads that fail are treated as cache misses; writes that fail are logged
and reported as False so the caller can keep the value for the session.
"""

import json
import logging
from typing import Any

from ..errors import StorageReadFailure, StorageWriteFailure
from .base import KeyValueStoreBase

logger = logging.getLogger(__name__)


class CacheStore:
    """Wraps a backend so storage problems never reach the caller."""

    def __init__(self, backend: KeyValueStoreBase):
        self.backend = backend

    def read(self, key: str) -> str | None:
        try:
            return self.backend.get(key)
        except StorageReadFailure as e:
            logger.warning(f"Error reading from cache: {e}")
            return None

    def write(self, key: str, value: str) -> bool:
        try:
            self.backend.set(key, value)
        except StorageWriteFailure as e:
            logger.warning(f"Error saving to cache: {e}")
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self.backend.delete(key)
        except StorageWriteFailure as e:
            logger.warning(f"Error removing from cache: {e}")
            return False
        return True

    def read_json(self, key: str) -> Any | None:
        """Read and parse a JSON value. Unparseable values count as absent."""
        raw = self.read(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt cache entry {key}: {e}")
            return None

    def write_json(self, key: str, value: Any) -> bool:
        return self.write(key, json.dumps(value, ensure_ascii=False))

    def clear(self, prefix: str = "") -> int:
        """Remove every key starting with prefix. Returns how many were removed."""
        try:
            keys = self.backend.keys()
        except StorageReadFailure as e:
            logger.warning(f"Error listing cache keys: {e}")
            return 0
        removed = 0
        for key in keys:
            if key.startswith(prefix) and self.remove(key):
                removed += 1
        return removed
