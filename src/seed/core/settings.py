"""Centralized settings for seed.

All fields can be set via ``SEED_*`` environment variables (e.g.
``SEED_MAX_DEPTH=8``) or a ``.env`` file.

Fields
──────
log_level / log_format : structlog configuration
resolver_backend       : ``file`` (records_dir) or ``http`` (http_url)
max_depth              : deepest branch the tree builder will expand,
                         at most max_supported_depth()
detect_cycles          : fail fast when an address repeats on its own path
limit_policy           : ``raise`` aborts the build, ``prune`` drops the subtree
max_workers            : >1 resolves sibling features concurrently
traversal_timeout      : overall deadline for one build (seconds)
cache_*                : memoize resolved records by address
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SeedSettings(BaseSettings):
    """Seed configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SEED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console", "auto"] = Field(default="auto")

    # ── Resolver ─────────────────────────────────────────────────
    resolver_backend: Literal["file", "http"] = Field(default="file")
    records_dir: Path = Field(default=Path("records"))
    record_suffix: str = Field(default=".json")
    http_url: str = Field(default="http://localhost:3000/api/thing")
    http_timeout: float = Field(default=10.0, gt=0)
    http_retries: int = Field(default=0, ge=0)
    strict_decode: bool = Field(default=False)

    # ── Traversal ────────────────────────────────────────────────
    max_depth: int = Field(default=32, ge=0)
    detect_cycles: bool = Field(default=False)
    limit_policy: Literal["raise", "prune"] = Field(default="raise")
    max_workers: int = Field(default=1, ge=1)
    traversal_timeout: float | None = Field(default=None, gt=0)

    @field_validator("max_depth")
    @classmethod
    def _depth_within_stack(cls, value: int) -> int:
        ceiling = max_supported_depth()
        if value > ceiling:
            raise ValueError(f"max_depth must be <= {ceiling} (interpreter recursion limit)")
        return value

    # ── Cache ────────────────────────────────────────────────────
    cache_enabled: bool = Field(default=False)
    cache_max_size: int = Field(default=10_000, ge=1)
    cache_ttl_seconds: int | None = Field(default=3600)


def max_supported_depth() -> int:
    """Deepest tree the recursive builder can expand without exhausting the stack."""
    return sys.getrecursionlimit() // 4


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SeedSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SeedSettings:
    """Load, validate, and cache a :class:`SeedSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = SeedSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, env changes)."""
    _settings_cache.clear()


__all__ = ["SeedSettings", "get_settings", "clear_settings_cache", "max_supported_depth"]
