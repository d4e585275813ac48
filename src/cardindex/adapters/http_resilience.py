from __future__ import annotations

import json
from typing import TYPE_CHECKING, TypedDict

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from cardindex.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
    ShouldCacheHook,
)
from cardindex.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, TimeoutTypes, URLTypes

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]


class _ClientOptions(TypedDict):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """Read-only async HTTP client with retry/backoff, rate limiting and caching.

    Layers, outermost first: the rate limiter, the optional hishel cache, the
    retry transport and finally the network. ``transport`` replaces only the
    network layer, so tests can hand in an ``httpx.MockTransport`` and still
    exercise retries. Once the retry budget is spent the last response comes
    back as is and the caller classifies it.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = _build_limiter(config.ratelimit)
        retrying = RetryTransport(transport=transport, retry=build_retry(config.retry))
        self._client = _build_client(config, retrying)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: URLTypes,
        *,
        params: QueryParamTypes | None = None,
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)


def _build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


def _build_client(
    config: ResilienceConfig, transport: httpx.AsyncBaseTransport
) -> httpx.AsyncClient:
    options: _ClientOptions = {
        "base_url": config.base_url or "",
        "timeout": config.timeout_seconds,
        "headers": dict(config.default_headers or {}),
        "transport": transport,
    }
    cache = config.cache
    if cache is None or not cache.enabled:
        return httpx.AsyncClient(**options)
    return AsyncCacheClient(**options, storage=_build_storage(cache), policy=_build_policy(cache))


class _JsonPredicateFilter(BaseFilter[HishelCacheResponse]):
    """Caches a response only when its decoded JSON body passes ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return False
        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return False
        return bool(self._predicate(payload))


def _build_storage(cache: CacheConfig) -> AsyncSqliteStorage:
    if cache.backend == "sqlite":
        database_path = cache.sqlite_path or str(get_storage_config().http_cache_path())
    elif cache.backend == "memory":
        database_path = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {cache.backend}")
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=cache.default_ttl_seconds,
        refresh_ttl_on_access=cache.refresh_ttl_on_access,
    )


def _build_policy(cache: CacheConfig) -> FilterPolicy | None:
    if cache.should_cache is None:
        return None
    return FilterPolicy(response_filters=[_JsonPredicateFilter(cache.should_cache)])
