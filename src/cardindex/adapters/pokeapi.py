"""PokeAPI species client used to build the catalog universe."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cardindex.adapters.http_resilience import ResilientClient
from cardindex.domain.reconciliation.pool import run_bounded
from cardindex.domain.universe import CatalogUniverse, Species

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from cardindex.config.http_resilience import ResilienceConfig
    from cardindex.config.pokeapi import PokeApiConfig

log = getLogger(__name__)


class PokeApiError(RuntimeError):
    """Raised when a species cannot be fetched or parsed."""


class NamedResource(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    url: str | None = None


class LocalizedName(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    language: NamedResource


class SpeciesPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    names: list[LocalizedName] = Field(default_factory=list["LocalizedName"])


def display_name(species: SpeciesPayload, *, language: str = "en") -> str:
    """Localized name (keeps punctuation such as ``Farfetch'd``), else a title-cased slug."""

    for entry in species.names:
        if entry.language.name == language and entry.name:
            return entry.name
    return " ".join(part[:1].upper() + part[1:] for part in species.name.split("-"))


class PokeApiClient:
    def __init__(
        self,
        *,
        config: PokeApiConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> PokeApiClient:
        self._client = self._client_factory(self._config.resilience)
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

    async def fetch_species(self, species_id: int) -> SpeciesPayload:
        if self._client is None:
            raise RuntimeError("PokeApiClient must be used inside 'async with'")
        try:
            response = await self._client.get(f"pokemon-species/{species_id}/")
        except httpx.TransportError as exc:
            raise PokeApiError(f"PokeAPI request failed for id={species_id}: {exc}") from exc
        if not response.is_success:
            raise PokeApiError(f"PokeAPI {response.status_code} for id={species_id}")
        try:
            return SpeciesPayload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise PokeApiError(f"Unexpected PokeAPI payload for id={species_id}") from exc

    async def fetch_universe(self) -> CatalogUniverse:
        """Fetch species 1..max_id; failed ids are logged and left out."""

        ids = list(range(1, self._config.max_id + 1))

        async def fetch(species_id: int) -> Species:
            payload = await self.fetch_species(species_id)
            name = display_name(payload, language=self._config.language)
            log.info("[%s/%s] %s", species_id, self._config.max_id, name)
            return Species(name=name, number=species_id)

        species: list[Species] = []
        for outcome in await run_bounded(ids, fetch, concurrency=self._config.concurrency):
            if outcome.value is None:
                log.error("Species id=%s skipped: %s", outcome.item, outcome.error)
                continue
            species.append(outcome.value)
        return CatalogUniverse(species)
