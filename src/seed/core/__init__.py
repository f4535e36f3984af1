"""Seed Core -- errors, logging, settings and caching shared by every layer.

Architecture::

    errors.py      Structured error hierarchy (SeedError, ResolutionError, ...)
    logging.py     structlog configuration + LogContext
    settings.py    SeedSettings (pydantic-settings, SEED_* env vars)
    cache.py       CacheBackend protocol + InMemoryCache
    deadline.py    Build-wide deadline carried in a contextvar
"""

from seed.core.cache import CacheBackend, InMemoryCache
from seed.core.deadline import Deadline, deadline_scope, get_effective_timeout, get_remaining_deadline
from seed.core.errors import (
    ConfigError,
    CycleDetectedError,
    DecodeError,
    ErrorCategory,
    ErrorContext,
    RecordNotFoundError,
    RecursionLimitError,
    ResolutionError,
    ResolverTimeoutError,
    ResolverUnavailableError,
    SeedError,
    is_retryable,
)
from seed.core.logging import LogContext, configure_logging, get_logger
from seed.core.settings import SeedSettings, clear_settings_cache, get_settings

__all__ = [
    # errors
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
    # logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # settings
    "SeedSettings",
    "get_settings",
    "clear_settings_cache",
    # cache
    "CacheBackend",
    "InMemoryCache",
    # deadline
    "Deadline",
    "deadline_scope",
    "get_effective_timeout",
    "get_remaining_deadline",
]
