"""Ports for fetching card data from an upstream search service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


class UpstreamError(RuntimeError):
    """Base class for failed upstream queries."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientUpstreamError(UpstreamError):
    """Retryable condition (rate limit, server error, network) that outlived its retries."""


class PermanentUpstreamError(UpstreamError):
    """Non-retryable upstream response."""


@dataclass(slots=True)
class SearchPage:
    """One page of raw card records plus the upstream's total for the query."""

    records: list[dict[str, Any]] = field(default_factory=list["dict[str, Any]"])
    total_count: int | None = None


@runtime_checkable
class CardSource(Protocol):
    """Async port used by the reconciliation engine and the verifier."""

    async def query(self, expression: str, *, page: int, page_size: int) -> SearchPage: ...

    async def query_all(self, expression: str) -> list[dict[str, Any]]: ...

    async def count(self, expression: str) -> int: ...


__all__ = [
    "CardSource",
    "PermanentUpstreamError",
    "SearchPage",
    "TransientUpstreamError",
    "UpstreamError",
]
