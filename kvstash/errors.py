"""Exception hierarchy for cache operations."""

from __future__ import annotations


class CacheError(Exception):
    """Base class for every error raised by the cache."""

    _label = "Cache error"

    def __init__(self, detail: object = "") -> None:
        self.detail = str(detail)
        super().__init__(self.detail)

    def __str__(self) -> str:
        return f"{self._label}: {self.detail}"


class CacheIOError(CacheError):
    """An I/O operation failed while reading or writing cache data."""

    _label = "I/O error"

    def __init__(self, error: object = "") -> None:
        super().__init__(error)
        if isinstance(error, BaseException):
            self.__cause__ = error


class SerializationError(CacheError):
    """A value could not be serialized."""

    _label = "Serialization error"


class DeserializationError(CacheError):
    """Stored data could not be deserialized."""

    _label = "Deserialization error"


class CapacityExceededError(CacheError):
    """The cache ran out of room."""

    _label = "Cache capacity exceeded"


class StorageBackendError(CacheError):
    """A storage backend reported a failure."""

    _label = "Storage backend error"


class NotFoundError(CacheError):
    """No entry exists for the requested key."""

    def __init__(self) -> None:
        super().__init__("")

    def __str__(self) -> str:
        return "Entry not found for key"


class InvalidConfigurationError(CacheError):
    """The cache configuration is not usable."""

    _label = "Invalid configuration"


class CompressionError(CacheError):
    """Compressing or decompressing data failed."""

    _label = "Compression error"


class CustomCacheError(CacheError):
    """Error raised by extensions of the cache."""

    _label = "Custom error"