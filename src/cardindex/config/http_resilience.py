"""Tuning for the resilient HTTP clients: retries, throttling and caching."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

type ShouldCacheHook = Callable[[object], bool]

# 404 is included because the card search API answers with it under load.
TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({404, 408, 429, *range(500, 600)})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Exponential backoff for idempotent reads; Retry-After wins when present."""

    total: int = 6
    backoff_factor: float = 0.8
    max_backoff_wait: float = 60.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "HEAD"})
    status_forcelist: frozenset[int] = TRANSIENT_STATUS_CODES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = True
    # Receives the decoded JSON body; responses failing it are not stored.
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
