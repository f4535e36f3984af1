"""
Resolver protocol: address → Thing.

The tree builder only ever calls ``resolve(address, thing_type)``. Where the
record comes from (a directory of JSON files, an in-process store, an HTTP
endpoint, a cache in front of any of those) is the resolver's business.

Contract:
    - Returns the Thing at ``address`` decoded as ``thing_type``
    - Raises ResolutionError (or a subclass) for every failure: not found,
      transport failure, or a record that does not decode as expected
    - Safe to call repeatedly for the same address
    - Honours the active deadline (seed.core.deadline): no work starts
      after it passes and blocking I/O is capped at the time left

Usage:
    from seed.resolvers import FileResolver

    resolver = FileResolver("records")
    thing = resolver.resolve("leaf1", ThingType.STRING)
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from seed.core.deadline import get_current_deadline
from seed.core.errors import DecodeError, ResolutionError, ResolverTimeoutError
from seed.core.logging import get_logger
from seed.things.codec import decode_thing
from seed.things.models import Thing

logger = get_logger(__name__)


class ResolverType(str, Enum):
    """Standard resolver types."""

    FILE = "file"
    HTTP = "http"
    MEMORY = "memory"
    CACHE = "cache"


@runtime_checkable
class Resolver(Protocol):
    """
    Protocol for all resolvers.

    Implementations must provide:
    - name: Identifier used in logs and error context
    - resolver_type: Type classification
    - resolve(): Fetch and decode one Thing
    """

    @property
    def name(self) -> str:
        ...

    @property
    def resolver_type(self) -> ResolverType:
        ...

    def resolve(self, address: str, thing_type: int) -> Thing:
        """
        Resolve an address to a Thing.

        Raises:
            ResolutionError: the address could not be resolved as thing_type
        """
        ...


# =============================================================================
# BASE RESOLVER
# =============================================================================


class BaseResolver:
    """
    Base class for resolver implementations.

    Subclasses implement ``_resolve()``; ``resolve()`` adds logging and
    guarantees that nothing but ResolutionError escapes.
    """

    def __init__(
        self,
        name: str,
        resolver_type: ResolverType,
        *,
        strict: bool = False,
    ):
        self._name = name
        self._resolver_type = resolver_type
        self._strict = strict

    @property
    def name(self) -> str:
        return self._name

    @property
    def resolver_type(self) -> ResolverType:
        return self._resolver_type

    def resolve(self, address: str, thing_type: int) -> Thing:
        """Resolve an address to a Thing, raising ResolutionError on failure."""
        logger.debug(
            "resolver.resolve",
            resolver=self._name,
            address=address,
            thing_type=int(thing_type),
        )
        try:
            deadline = get_current_deadline()
            if deadline is not None and deadline.is_expired():
                raise ResolverTimeoutError(
                    f"Deadline of {deadline.timeout_seconds}s passed before {address!r} resolved",
                    address=address,
                    thing_type=int(thing_type),
                )
            return self._resolve(address, thing_type)
        except Exception as e:
            error = self._wrap_error(e, address, thing_type)
            logger.warning(
                "resolver.failed",
                resolver=self._name,
                address=address,
                thing_type=int(thing_type),
                error=error.message,
                error_type=type(error).__name__,
            )
            if error is e:
                raise
            raise error from e

    @abstractmethod
    def _resolve(self, address: str, thing_type: int) -> Thing:
        raise NotImplementedError

    def _decode(
        self,
        raw: bytes | str | Mapping[str, Any],
        address: str,
        thing_type: int,
    ) -> Thing:
        """Decode raw content, translating DecodeError into ResolutionError."""
        try:
            return decode_thing(raw, thing_type, strict=self._strict)
        except DecodeError as e:
            raise ResolutionError(
                f"Record at {address!r} does not decode as type {int(thing_type)}: {e.message}",
                address=address,
                thing_type=int(thing_type),
                cause=e,
            ) from e

    def _wrap_error(
        self,
        error: Exception,
        address: str,
        thing_type: int,
    ) -> ResolutionError:
        """Wrap an exception in ResolutionError with resolver context."""
        if isinstance(error, ResolutionError):
            wrapped = error
        else:
            wrapped = ResolutionError(
                str(error) or type(error).__name__,
                address=address,
                thing_type=int(thing_type),
                cause=error,
            )
        if wrapped.context.resolver is None:
            wrapped.with_context(resolver=self._name)
        return wrapped

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"


__all__ = [
    "ResolverType",
    "Resolver",
    "BaseResolver",
]
