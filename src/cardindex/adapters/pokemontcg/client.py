"""HTTP client for the Pokemon TCG card search API."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx

from cardindex.adapters.http_resilience import ResilientClient
from cardindex.domain.ports.fetching import (
    PermanentUpstreamError,
    SearchPage,
    TransientUpstreamError,
)

from .schema import EnvelopeKind, parse_upstream_envelope

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from cardindex.config.http_resilience import ResilienceConfig
    from cardindex.config.pokemontcg import PokemonTcgConfig

log = getLogger(__name__)

CARDS_PATH = "cards"


class PokemonTcgClient:
    """Async search client implementing the ``CardSource`` port.

    Use as an async context manager; the underlying connection pool lives for
    the duration of the ``async with`` block so a whole pipeline stage shares it.
    """

    def __init__(
        self,
        *,
        config: PokemonTcgConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> PokemonTcgClient:
        self._client = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def page_size(self) -> int:
        return self._config.page_size

    async def query(self, expression: str, *, page: int, page_size: int) -> SearchPage:
        params: dict[str, str | int] = {"q": expression, "page": page, "pageSize": page_size}
        if self._config.order_by:
            params["orderBy"] = self._config.order_by
        payload = await self._perform_request(params=httpx.QueryParams(params))

        envelope = parse_upstream_envelope(payload)
        if envelope.kind is EnvelopeKind.INVALID:
            raise PermanentUpstreamError(f"Unexpected search payload for {expression!r}")
        total = envelope.total_count
        if envelope.kind is EnvelopeKind.ARRAY:
            total = len(envelope.records)
        return SearchPage(records=envelope.records, total_count=total)

    async def query_all(self, expression: str) -> list[dict[str, Any]]:
        """Collect every page for ``expression``.

        Stops on a short page, once ``totalCount`` records are in hand, or at the
        configured page ceiling, whichever comes first.
        """

        page_size = self._config.page_size
        collected: list[dict[str, Any]] = []
        page = 1
        while True:
            result = await self.query(expression, page=page, page_size=page_size)
            collected.extend(result.records)
            if len(result.records) < page_size:
                break
            if result.total_count is not None and len(collected) >= result.total_count:
                break
            if page >= self._config.max_pages:
                log.warning(
                    "Page ceiling %s reached for %r with %s records",
                    self._config.max_pages,
                    expression,
                    len(collected),
                )
                break
            page += 1
        return collected

    async def count(self, expression: str) -> int:
        result = await self.query(expression, page=1, page_size=1)
        return result.total_count or 0

    async def _perform_request(self, *, params: httpx.QueryParams) -> object:
        if self._client is None:
            raise RuntimeError("PokemonTcgClient must be used inside 'async with'")

        try:
            response = await self._client.get(CARDS_PATH, params=params)
        except httpx.TransportError as exc:
            raise TransientUpstreamError(f"Search request failed: {exc}") from exc

        status = response.status_code
        if not response.is_success:
            message = f"Search API responded {status}"
            if status in self._resilience.retry.status_forcelist:
                raise TransientUpstreamError(message, status_code=status)
            raise PermanentUpstreamError(message, status_code=status)

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PermanentUpstreamError("Search API returned invalid JSON") from exc
