"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from datetime import UTC, date, datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

import uvicorn

from cardindex.adapters.filesystem import ArtifactStore
from cardindex.adapters.pokeapi import PokeApiClient
from cardindex.adapters.pokemontcg import PokemonTcgClient
from cardindex.config.pokeapi import get_pokeapi_config
from cardindex.config.pokemontcg import get_pokemontcg_config
from cardindex.config.reconciliation import EngineConfig, VerifyConfig
from cardindex.config.storage import get_storage_config
from cardindex.domain.prices import DEFAULT_RETAIN_DAYS, update_history
from cardindex.domain.reconciliation import ReconciliationEngine
from cardindex.domain.universe import load_universe, save_universe
from cardindex.domain.verification import Verifier
from cardindex.edge import DEFAULT_CACHE_SECONDS, create_app

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardindex.adapters.filesystem import PersistResult
    from cardindex.adapters.http_resilience import ResilientClient
    from cardindex.config.http_resilience import ResilienceConfig
    from cardindex.config.pokeapi import PokeApiConfig
    from cardindex.config.pokemontcg import PokemonTcgConfig
    from cardindex.config.storage import StorageConfig
    from cardindex.domain.reconciliation import ReconciliationResult
    from cardindex.domain.universe import CatalogUniverse
    from cardindex.domain.verification import VerificationReport

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BuildResult:
    reconciliation: ReconciliationResult
    persisted: PersistResult


@dataclass(slots=True, frozen=True)
class PriceSnapshotResult:
    files: int
    written: int


def build_universe(
    *,
    storage: StorageConfig | None = None,
    config: PokeApiConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> CatalogUniverse:
    """Fetch species names from PokeAPI and write the universe file."""

    storage_config = storage or get_storage_config()
    pokeapi_config = config or get_pokeapi_config(
        cache_path=str(storage_config.http_cache_path())
    )

    async def run() -> CatalogUniverse:
        async with PokeApiClient(config=pokeapi_config, client_factory=client_factory) as client:
            return await client.fetch_universe()

    universe = asyncio.run(run())
    path = storage_config.resolve_universe_file()
    save_universe(path, universe)
    log.info("Wrote %s (%s entries)", path, len(universe))
    return universe


def build_catalog(
    *,
    storage: StorageConfig | None = None,
    config: PokemonTcgConfig | None = None,
    engine_config: EngineConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> BuildResult:
    """Run one full fetch/reconcile/persist cycle.

    Loading the universe and preparing the output directories are the only
    fatal steps; upstream failures end up as empty buckets and are reported.
    """

    storage_config = storage or get_storage_config()
    universe = load_universe(storage_config.resolve_universe_file())
    store = ArtifactStore(storage_config.resolve_data_dir())
    store.ensure_dirs()

    tcg_config = config or get_pokemontcg_config()
    if tcg_config.api_key is None:
        log.warning("POKEMONTCG_API_KEY not set; running with the anonymous rate limit")

    async def run() -> ReconciliationResult:
        async with PokemonTcgClient(config=tcg_config, client_factory=client_factory) as source:
            engine = ReconciliationEngine(
                source=source,
                universe=universe,
                config=engine_config or EngineConfig(),
            )
            return await engine.run()

    reconciliation = asyncio.run(run())
    persisted = store.persist(reconciliation.catalog)

    stats = reconciliation.stats
    empty = reconciliation.catalog.empty_keys()
    log.info(
        "DONE: %s keys, %s records seen, %s dropped, %s empty keys",
        len(reconciliation.catalog),
        stats.records_seen,
        stats.dropped,
        len(empty),
    )
    for failure in stats.failures:
        log.warning("Failed %s: %s", failure.target, failure.error)
    return BuildResult(reconciliation=reconciliation, persisted=persisted)


def verify_catalog(
    *,
    storage: StorageConfig | None = None,
    config: PokemonTcgConfig | None = None,
    verify_config: VerifyConfig | None = None,
    client_factory: ClientFactory | None = None,
    step_summary: Path | None = None,
) -> VerificationReport:
    """Compare persisted name artifacts with live upstream counts and write the report."""

    storage_config = storage or get_storage_config()
    universe = load_universe(storage_config.resolve_universe_file())
    store = ArtifactStore(storage_config.resolve_data_dir())
    saved = store.saved_counts(universe)
    tcg_config = config or get_pokemontcg_config()

    async def run() -> VerificationReport:
        async with PokemonTcgClient(config=tcg_config, client_factory=client_factory) as source:
            verifier = Verifier(source=source, config=verify_config or VerifyConfig())
            return await verifier.verify(universe, saved)

    report = asyncio.run(run())
    path = store.write_report(report)
    log.info("VERIFY DONE: %s species with gaps. Report: %s", report.missing, path)

    summary_path = step_summary or _step_summary_path()
    if summary_path is not None:
        try:
            with summary_path.open("a", encoding="utf-8") as handle:
                handle.write(report.summary_markdown())
        except OSError as exc:
            log.warning("Cannot append step summary to %s: %s", summary_path, exc)
    return report


def _step_summary_path() -> Path | None:
    value = os.getenv("GITHUB_STEP_SUMMARY")
    return Path(value) if value else None


def snapshot_prices(
    *,
    storage: StorageConfig | None = None,
    today: date | None = None,
    retain_days: int = DEFAULT_RETAIN_DAYS,
) -> PriceSnapshotResult:
    """Append today's prices of every persisted card to its history file."""

    storage_config = storage or get_storage_config()
    store = ArtifactStore(storage_config.resolve_data_dir())
    store.ensure_dirs(store.prices_dir)
    snapshot_day = today or datetime.now(UTC).date()

    files = 0
    written = 0
    for path in store.iter_name_artifacts():
        cards = store.read_cards(path)
        if not cards:
            continue
        for card in cards:
            card_id = card.get("id")
            if not isinstance(card_id, str) or not card_id:
                continue
            history = store.read_json(store.price_path(card_id))
            updated = update_history(
                history if isinstance(history, dict) else None,
                card,
                today=snapshot_day,
                retain_days=retain_days,
            )
            try:
                store.write_price_history(card_id, updated)
            except OSError as exc:
                log.error("Cannot write price history for %s: %s", card_id, exc)
                continue
            written += 1
        files += 1
        if files % 25 == 0:
            log.info("processed name files: %s", files)

    log.info("DONE prices: files=%s, written=%s", files, written)
    return PriceSnapshotResult(files=files, written=written)


def serve_edge(
    *,
    storage: StorageConfig | None = None,
    host: str = "127.0.0.1",
    port: int = 8787,
    cache_seconds: int = DEFAULT_CACHE_SECONDS,
) -> None:
    """Serve the artifact tree through the edge proxy until interrupted."""

    storage_config = storage or get_storage_config()
    app = create_app(storage_config.resolve_data_dir(), cache_seconds=cache_seconds)
    log.info("Serving %s on http://%s:%s", storage_config.resolve_data_dir(), host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)
