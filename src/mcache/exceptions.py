"""
Exception hierarchy for the cache.

All exceptions inherit from CacheError, which carries optional structured
context for logging and debugging.
"""

from __future__ import annotations

from typing import Any


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(CacheError):
    """Raised when configuration is invalid in a way pydantic cannot catch.

    Examples:
        - CACHE_DB_PATH points at an existing directory
    """

    pass


class StoreUnavailableError(CacheError):
    """Raised when the backing store cannot be reached or used.

    Fatal during startup. In steady state it is surfaced to the caller of
    get/put/delete; nothing retries.

    Context should include:
        - operation: The store operation that failed
        - db_path: Path of the database file
        - key: The cache key, when the operation targets one
    """

    pass


class SerializationError(CacheError):
    """Raised when put() receives a value that cannot be encoded.

    Context should include:
        - key: The cache key
        - value_type: Type name of the rejected value
    """

    pass


class DeserializationError(CacheError):
    """A stored row could not be decoded.

    Never raised out of get(); built to describe the corrupt row in logs.
    """

    pass
