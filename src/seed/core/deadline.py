"""
Deadline tracking shared across a build and the resolve calls it makes.

The active deadline lives in a contextvar, so it follows the build into
worker threads that run inside a copied context. Resolvers read it to cap
their own timeouts and to refuse work once the deadline has passed.

Nested scopes: the shortest remaining deadline wins.

Usage:
    from seed.core.deadline import deadline_scope, get_effective_timeout

    with deadline_scope(5.0):
        ...
        timeout = get_effective_timeout(10.0)  # at most the 5 s left
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Deadline:
    """
    Absolute deadline on the monotonic clock.

    Attributes:
        deadline: Monotonic timestamp at which time runs out
        timeout_seconds: Length of the scope that created it
        start_time: When the scope started
    """

    deadline: float
    timeout_seconds: float
    start_time: float = field(default_factory=time.monotonic)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.deadline - time.monotonic())

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def is_expired(self) -> bool:
        return time.monotonic() >= self.deadline


_current_deadline: ContextVar[Deadline | None] = ContextVar("seed_deadline", default=None)


def get_current_deadline() -> Deadline | None:
    return _current_deadline.get()


def get_remaining_deadline() -> float | None:
    """Seconds left on the active deadline, or None outside any scope."""
    current = _current_deadline.get()
    return None if current is None else current.remaining()


def get_effective_timeout(requested: float) -> float:
    """``requested`` capped at the time left on the active deadline."""
    remaining = get_remaining_deadline()
    if remaining is None:
        return requested
    return min(requested, remaining)


@contextmanager
def deadline_scope(seconds: float | None) -> Iterator[Deadline | None]:
    """
    Run the block under a deadline ``seconds`` from now.

    ``None`` adds no deadline of its own and yields whatever deadline is
    already active. An outer deadline that ends sooner still applies.
    """
    if seconds is None:
        yield _current_deadline.get()
        return
    if seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")

    effective = get_effective_timeout(seconds)
    now = time.monotonic()
    scope = Deadline(deadline=now + effective, timeout_seconds=effective, start_time=now)
    token = _current_deadline.set(scope)
    try:
        yield scope
    finally:
        _current_deadline.reset(token)


__all__ = [
    "Deadline",
    "deadline_scope",
    "get_current_deadline",
    "get_effective_timeout",
    "get_remaining_deadline",
]
