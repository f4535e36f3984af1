"""Build the configured resolver from SeedSettings."""

from __future__ import annotations

from seed.core.cache import InMemoryCache
from seed.core.errors import ConfigError
from seed.core.settings import SeedSettings, get_settings
from seed.resolvers.caching import CachingResolver
from seed.resolvers.file import FileResolver
from seed.resolvers.http import HttpResolver
from seed.resolvers.protocol import Resolver


def create_resolver(settings: SeedSettings | None = None) -> Resolver:
    """
    Create the resolver selected by ``settings.resolver_backend``.

    Wrapped in a CachingResolver when ``settings.cache_enabled`` is set.
    """
    settings = settings or get_settings()

    resolver: Resolver
    if settings.resolver_backend == "file":
        resolver = FileResolver(
            settings.records_dir,
            suffix=settings.record_suffix,
            strict=settings.strict_decode,
        )
    elif settings.resolver_backend == "http":
        resolver = HttpResolver(
            settings.http_url,
            timeout=settings.http_timeout,
            retries=settings.http_retries,
            strict=settings.strict_decode,
        )
    else:
        raise ConfigError(f"Unknown resolver backend: {settings.resolver_backend!r}")

    if settings.cache_enabled:
        resolver = CachingResolver(
            resolver,
            cache=InMemoryCache(
                max_size=settings.cache_max_size,
                default_ttl_seconds=settings.cache_ttl_seconds,
            ),
        )
    return resolver


__all__ = ["create_resolver"]
