"""
Structured error types for seed.

Every failure raised by the record codec, the resolvers and the tree builder
is a ``SeedError`` carrying a category, a retry hint, structured context and
the chained underlying exception.

Manifesto:
    - **Typed Error Hierarchy:** Decode, resolution and traversal failures
      are distinct types so callers can recover from one and not the others
    - **Rich Context:** Errors carry the address, discriminant and resolver
      that were involved
    - **Error Chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                         SeedError                             │
        │           (category, retryable, context, cause)               │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  DecodeError        ResolutionError        RecursionLimitError│
        │  (DECODE)           (RESOLUTION)           (TRAVERSAL)        │
        │                          │                        │           │
        │                RecordNotFoundError        CycleDetectedError  │
        │                ResolverUnavailableError                       │
        │                  └ ResolverTimeoutError                       │
        │                                                               │
        │  ConfigError (CONFIG)                                         │
        └──────────────────────────────────────────────────────────────┘

Recovery policy:
    - ``DecodeError`` surfaces to whoever called the codec.
    - ``ResolutionError`` is recovered by the tree builder: the feature is
      dropped from its parent and recorded as a failure.
    - ``RecursionLimitError`` aborts the build (or prunes the subtree when
      the builder runs with ``limit_policy="prune"``).

Usage:
    from seed.core.errors import ResolutionError

    raise ResolutionError("Thing not found", address="leaf1").with_context(
        resolver="records_dir",
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    DECODE = "DECODE"             # Malformed encoded record
    RESOLUTION = "RESOLUTION"     # Address could not be resolved
    NETWORK = "NETWORK"           # Transport failure, timeout
    TRAVERSAL = "TRAVERSAL"       # Depth limit, cycles
    CONFIG = "CONFIG"             # Misuse, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Typed fields cover what the resolvers and the tree builder know about a
    failure; anything else goes into ``metadata``.
    """

    # Record context
    address: str | None = None
    thing_type: int | None = None
    depth: int | None = None

    # Resolver context
    resolver: str | None = None
    url: str | None = None
    http_status: int | None = None
    path: str | None = None

    # Additional metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["address", "thing_type", "depth", "resolver", "url",
                    "http_status", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SeedError(Exception):
    """
    Base exception for all seed errors.

    Subclasses set ``default_category`` and ``default_retryable``.

    Examples:
        >>> error = SeedError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(address="root").context.address
        'root'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SeedError:
        """
        Add context to this error (fluent API).

        Known ``ErrorContext`` fields are set directly, anything else lands
        in ``context.metadata``.
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DECODE ERRORS
# =============================================================================


class DecodeError(SeedError):
    """
    Encoded input is malformed for the selected record variant.

    ``thing_type`` is the variant that was attempted (``None`` when the
    discriminant itself could not be determined).
    """

    default_category = ErrorCategory.DECODE

    def __init__(
        self,
        message: str,
        *,
        thing_type: int | None = None,
        cause: Exception | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, cause=cause, **kwargs)
        self.thing_type = thing_type
        if thing_type is not None:
            self.context.thing_type = thing_type


# =============================================================================
# RESOLUTION ERRORS
# =============================================================================


class ResolutionError(SeedError):
    """A feature's target could not be fetched or did not decode as expected."""

    default_category = ErrorCategory.RESOLUTION

    def __init__(
        self,
        message: str,
        *,
        address: str | None = None,
        thing_type: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.address = address
        self.thing_type = thing_type
        if address is not None:
            self.context.address = address
        if thing_type is not None:
            self.context.thing_type = thing_type


class RecordNotFoundError(ResolutionError):
    """No record exists at the address."""


class ResolverUnavailableError(ResolutionError):
    """The resolver backend could not be reached or answered with an error."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class ResolverTimeoutError(ResolverUnavailableError):
    """The resolve call (or the traversal deadline) timed out."""


# =============================================================================
# TRAVERSAL ERRORS
# =============================================================================


class RecursionLimitError(SeedError):
    """Tree expansion went deeper than the configured bound."""

    default_category = ErrorCategory.TRAVERSAL

    def __init__(
        self,
        message: str,
        *,
        address: str | None = None,
        depth: int | None = None,
        limit: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.address = address
        self.depth = depth
        self.limit = limit
        self.context.address = address
        self.context.depth = depth
        if limit is not None:
            self.context.metadata["limit"] = limit


class CycleDetectedError(RecursionLimitError):
    """An address reappeared on its own ancestor path."""

    def __init__(
        self,
        message: str,
        *,
        path: tuple[str, ...] = (),
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.path = tuple(path)
        self.context.metadata["cycle"] = " -> ".join(self.path)


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(SeedError):
    """Configuration or API misuse."""

    default_category = ErrorCategory.CONFIG


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SeedError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SeedError",
    "DecodeError",
    "ResolutionError",
    "RecordNotFoundError",
    "ResolverUnavailableError",
    "ResolverTimeoutError",
    "RecursionLimitError",
    "CycleDetectedError",
    "ConfigError",
    "is_retryable",
]
