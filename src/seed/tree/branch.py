"""
Seed and Branch: expand a Thing's Features into a materialized tree.

A Seed pairs an origin Thing with the Branch tree built from it. Building a
Branch walks the Thing's Features depth-first in declared order, resolves
each one, and recurses into whatever resolved:

    Seed(origin=root)
    └── Branch(root)                    depth 0
        ├── Branch(leaf1)               depth 1, leaf: recursion stops
        └── Branch(box)                 depth 1, container: recurse
            └── Branch(leaf2)           depth 2

Failure policy:
    - A Feature that fails to resolve is left out of ``children`` and
      recorded in the parent's ``failures``; its siblings are unaffected.
    - Going deeper than ``max_depth`` raises RecursionLimitError. With
      ``limit_policy="prune"`` the offending subtree is dropped and recorded
      as a failure on its parent instead.
    - ``detect_cycles=True`` fails as soon as an address repeats on its own
      ancestor path (CycleDetectedError) instead of waiting for the limit.
      ``prune`` always checks the ancestor path, so a cycle is cut where it
      closes rather than expanded until the limit.
    - ``max_depth`` is capped by max_supported_depth() so the limit is hit
      before the interpreter's own recursion limit.

Concurrency:
    ``max_workers > 1`` resolves the Features of one container in a thread
    pool. Children are still assembled in declared order and recursion stays
    on the calling thread. Each task runs in a copy of the caller's context,
    so bound log fields and the build deadline reach the workers.

    ``timeout`` bounds the whole build. The deadline is published through
    seed.core.deadline: resolvers cap blocking I/O at the time left and
    refuse to start once it has passed. Unfinished resolutions are recorded
    as ResolverTimeoutError failures, and the pool is joined before the
    build returns.

Usage:
    from seed.tree import new_seed

    seed = new_seed(origin, FileResolver("records"), max_depth=8)
    for failure in collect_failures(seed.tree):
        print(failure.address, failure.error)
"""

from __future__ import annotations

import contextvars
import sys
from collections.abc import Iterator, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Literal

from seed.core.deadline import Deadline, deadline_scope
from seed.core.errors import (
    ConfigError,
    CycleDetectedError,
    RecursionLimitError,
    ResolutionError,
    ResolverTimeoutError,
    SeedError,
)
from seed.core.logging import LogContext, get_logger
from seed.core.settings import SeedSettings, get_settings, max_supported_depth
from seed.resolvers.protocol import Resolver
from seed.things.models import BaseThing, Feature, Thing, ThingType
from seed.tree.traversal import collect_failures, count_branches

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 32

LimitPolicy = Literal["raise", "prune"]


@dataclass
class ResolutionFailure:
    """A Feature that did not become a child Branch, and why."""

    feature: Feature
    error: SeedError
    depth: int

    @property
    def address(self) -> str:
        return self.feature.address


@dataclass
class Branch:
    """
    Tree node: a resolved Thing plus the Branches of its resolved Features.

    ``children`` is only ever non-empty for container Things. ``failures``
    lists the Features that were dropped, so an empty ``children`` can be
    told apart from a container whose references all failed.
    """

    thing: Thing
    children: list[Branch] = field(default_factory=list)
    failures: list[ResolutionFailure] = field(default_factory=list)
    depth: int = 0

    @property
    def address(self) -> str:
        return self.thing.address

    @property
    def is_leaf(self) -> bool:
        """True for scalar Things; a container stays a non-leaf even when empty."""
        return not self.thing.is_container

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def __iter__(self) -> Iterator[Branch]:
        return iter(self.children)


@dataclass
class Seed:
    """Traversal root. ``tree.thing`` is ``origin`` itself, never a re-fetched copy."""

    origin: Thing
    tree: Branch


@dataclass
class _Traversal:
    """Per-build state shared by every level of one build."""

    deadline: Deadline | None = None
    executor: ThreadPoolExecutor | None = None

    def expired(self) -> bool:
        return self.deadline is not None and self.deadline.is_expired()

    def remaining(self) -> float | None:
        return None if self.deadline is None else self.deadline.remaining()


class TreeBuilder:
    """Builds Branch trees through an injected Resolver."""

    def __init__(
        self,
        resolver: Resolver,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        detect_cycles: bool = False,
        max_workers: int = 1,
        timeout: float | None = None,
        limit_policy: LimitPolicy = "raise",
    ):
        if resolver is None:
            raise ConfigError("TreeBuilder requires a resolver")
        if max_depth < 0:
            raise ConfigError(f"max_depth must be >= 0, got {max_depth}")
        if max_depth > max_supported_depth():
            raise ConfigError(
                f"max_depth {max_depth} exceeds the supported ceiling {max_supported_depth()} "
                f"(interpreter recursion limit {sys.getrecursionlimit()})"
            )
        if max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {max_workers}")
        if timeout is not None and timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")
        if limit_policy not in ("raise", "prune"):
            raise ConfigError(f"Unknown limit_policy: {limit_policy!r}")

        self._resolver = resolver
        self._max_depth = max_depth
        self._detect_cycles = detect_cycles or limit_policy == "prune"
        self._max_workers = max_workers
        self._timeout = timeout
        self._limit_policy = limit_policy

    @classmethod
    def from_settings(cls, resolver: Resolver, settings: SeedSettings | None = None) -> TreeBuilder:
        settings = settings or get_settings()
        return cls(
            resolver,
            max_depth=settings.max_depth,
            detect_cycles=settings.detect_cycles,
            max_workers=settings.max_workers,
            timeout=settings.traversal_timeout,
            limit_policy=settings.limit_policy,
        )

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    @property
    def max_depth(self) -> int:
        return self._max_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_branch(self, thing: Thing) -> Branch:
        """
        Build the Branch for ``thing`` and, recursively, for its Features.

        Raises:
            ConfigError: ``thing`` is not a Thing
            RecursionLimitError: depth limit hit (``limit_policy="raise"``)
        """
        if not isinstance(thing, BaseThing):
            raise ConfigError(f"Cannot build a branch from {type(thing).__name__}")

        with deadline_scope(self._timeout) as deadline:
            traversal = _Traversal(deadline=deadline)
            if self._max_workers > 1:
                traversal.executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="seed-resolve",
                )
            try:
                return self._build(thing, 0, (), traversal)
            finally:
                if traversal.executor is not None:
                    # Running resolves are bounded by the deadline; queued ones are dropped
                    traversal.executor.shutdown(wait=True, cancel_futures=True)

    def new_seed(self, origin: Thing) -> Seed:
        """Create a Seed whose tree is expanded from ``origin``."""
        if origin is None:
            raise ConfigError("Seed origin must be a Thing, got None")

        with LogContext(origin=origin.address):
            tree = self.build_branch(origin)
            logger.info(
                "seed.built",
                branches=count_branches(tree),
                failures=len(collect_failures(tree)),
            )
        return Seed(origin=origin, tree=tree)

    # ------------------------------------------------------------------
    # Recursion
    # ------------------------------------------------------------------

    def _build(
        self,
        thing: Thing,
        depth: int,
        path: tuple[str, ...],
        traversal: _Traversal,
    ) -> Branch:
        if depth > self._max_depth:
            raise RecursionLimitError(
                f"Depth {depth} exceeds limit {self._max_depth} at {thing.address!r}",
                address=thing.address,
                depth=depth,
                limit=self._max_depth,
            )
        if self._detect_cycles and thing.address in path:
            raise CycleDetectedError(
                f"Address {thing.address!r} is its own ancestor",
                path=path + (thing.address,),
                address=thing.address,
                depth=depth,
                limit=self._max_depth,
            )

        branch = Branch(thing=thing, depth=depth)
        if thing.thing_type != ThingType.CONTAINER:
            return branch

        features = thing.sorted_features()
        path = path + (thing.address,)
        outcomes = self._outcomes(features, traversal)
        for feature, outcome in zip(features, outcomes):
            if isinstance(outcome, SeedError):
                self._record_failure(branch, feature, outcome)
                continue

            try:
                child = self._build(outcome, depth + 1, path, traversal)
            except RecursionLimitError as e:
                # Logged by the parent of the branch that hit the limit, not by every ancestor
                if e.depth == depth + 1:
                    logger.warning(
                        "branch.depth_limit",
                        parent=thing.address,
                        address=feature.address,
                        depth=depth + 1,
                        limit=self._max_depth,
                        error_type=type(e).__name__,
                    )
                if self._limit_policy == "raise":
                    raise
                branch.failures.append(ResolutionFailure(feature, e, depth + 1))
                continue

            branch.children.append(child)
        return branch

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _outcomes(
        self,
        features: Sequence[Feature],
        traversal: _Traversal,
    ) -> Iterator[Thing | SeedError]:
        """Yield one resolved Thing or error per feature, in feature order."""
        if traversal.executor is None:
            # Lazy so each sibling resolves only after the previous subtree is built
            for feature in features:
                if traversal.expired():
                    yield self._timeout_error(feature)
                else:
                    yield self._resolve_one(feature)
            return

        futures: list[Future] = [
            traversal.executor.submit(contextvars.copy_context().run, self._resolve_one, feature)
            for feature in features
        ]
        for feature, future in zip(features, futures):
            try:
                yield future.result(timeout=traversal.remaining())
            except FuturesTimeoutError:
                future.cancel()
                yield self._timeout_error(feature)

    def _resolve_one(self, feature: Feature) -> Thing | SeedError:
        try:
            thing = self._resolver.resolve(feature.address, feature.thing_type)
        except ResolutionError as e:
            return e
        except Exception as e:
            logger.error(
                "branch.resolver_error",
                address=feature.address,
                resolver=self._resolver.name,
                exc_info=True,
            )
            return ResolutionError(
                str(e) or type(e).__name__,
                address=feature.address,
                thing_type=feature.thing_type,
                cause=e,
            ).with_context(resolver=self._resolver.name)

        if thing.thing_type != feature.thing_type:
            return ResolutionError(
                f"Resolved {thing.address!r} as type {thing.thing_type}, "
                f"feature expects {feature.thing_type}",
                address=feature.address,
                thing_type=feature.thing_type,
            ).with_context(resolver=self._resolver.name)

        logger.debug("branch.feature_resolved", address=feature.address, order=feature.order)
        return thing

    def _timeout_error(self, feature: Feature) -> ResolverTimeoutError:
        error = ResolverTimeoutError(
            f"Build deadline passed before {feature.address!r} resolved",
            address=feature.address,
            thing_type=feature.thing_type,
        )
        error.with_context(resolver=self._resolver.name)
        return error

    def _record_failure(self, branch: Branch, feature: Feature, error: SeedError) -> None:
        logger.warning(
            "branch.feature_failed",
            parent=branch.address,
            address=feature.address,
            order=feature.order,
            error=error.message,
            error_type=type(error).__name__,
        )
        branch.failures.append(ResolutionFailure(feature, error, branch.depth + 1))


def build_branch(thing: Thing, resolver: Resolver, **options) -> Branch:
    """Build a Branch tree for ``thing`` (options as for TreeBuilder)."""
    return TreeBuilder(resolver, **options).build_branch(thing)


def new_seed(origin: Thing, resolver: Resolver, **options) -> Seed:
    """Create a Seed for ``origin`` (options as for TreeBuilder)."""
    return TreeBuilder(resolver, **options).new_seed(origin)


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ResolutionFailure",
    "Branch",
    "Seed",
    "TreeBuilder",
    "build_branch",
    "new_seed",
]
