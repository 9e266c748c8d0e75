"""Local key-value storage for generated artifacts and notes."""

from .base import KeyValueStoreBase, get_store
from .cache import CacheStore
from .keys import cache_key

__all__ = ["CacheStore", "KeyValueStoreBase", "cache_key", "get_store"]
