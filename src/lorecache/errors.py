"""Error taxonomy for lorecache.

Storage failures are non-fatal and degrade to cache misses or unsaved
writes. Fetch and validation failures are caught at the session boundary
and turned into inline messages.
"""


class LoreCacheError(Exception):
    """Base class for all lorecache errors."""


class StorageFailure(LoreCacheError):
    """The local key-value store could not be used."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{message} (key={key})")
        self.key = key
        self.reason = message


class StorageReadFailure(StorageFailure):
    """Reading a key failed (disabled storage, unreadable file)."""


class StorageWriteFailure(StorageFailure):
    """Writing a key failed (quota exceeded, disabled storage)."""


class FetchFailure(LoreCacheError):
    """A generated artifact could not be fetched.

    The message is shown to the user as-is.
    """


class ValidationFailure(LoreCacheError):
    """User input was rejected before any side effect happened."""
