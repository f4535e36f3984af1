"""
Caching resolver: memoize successful resolutions by address.

Sits in front of any other resolver. Records referenced from several
containers are fetched once per TTL window; failures are never cached, so a
record that was missing on one build is looked up again on the next.
"""

from __future__ import annotations

from seed.core.cache import CacheBackend, InMemoryCache
from seed.core.logging import get_logger
from seed.resolvers.protocol import BaseResolver, Resolver, ResolverType
from seed.things.models import Thing

logger = get_logger(__name__)


class CachingResolver(BaseResolver):
    """Memoizing wrapper around another resolver."""

    def __init__(
        self,
        inner: Resolver,
        *,
        cache: CacheBackend | None = None,
        ttl_seconds: int | None = None,
        name: str | None = None,
    ):
        super().__init__(name=name or f"cached:{inner.name}", resolver_type=ResolverType.CACHE)
        self._inner = inner
        self._cache = cache if cache is not None else InMemoryCache()
        self._ttl_seconds = ttl_seconds
        self.hits = 0
        self.misses = 0

    @property
    def inner(self) -> Resolver:
        return self._inner

    @staticmethod
    def cache_key(address: str, thing_type: int) -> str:
        return f"{int(thing_type)}:{address}"

    def _resolve(self, address: str, thing_type: int) -> Thing:
        key = self.cache_key(address, thing_type)
        cached = self._cache.get(key)
        if cached is not None:
            self.hits += 1
            logger.debug("resolver.cache_hit", resolver=self.name, address=address)
            return cached

        self.misses += 1
        thing = self._inner.resolve(address, thing_type)
        self._cache.set(key, thing, ttl_seconds=self._ttl_seconds)
        return thing

    def invalidate(self, address: str, thing_type: int) -> None:
        self._cache.delete(self.cache_key(address, thing_type))

    def clear(self) -> None:
        self._cache.clear()


__all__ = ["CachingResolver"]
