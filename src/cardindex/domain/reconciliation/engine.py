"""Orchestrator for catalog reconciliation.

The engine pulls records from a ``CardSource`` in three tiers: broad range
queries, adaptive subdivision of failing ranges down to per-identifier
queries, and targeted backfill for keys that look under-counted. Every tier
feeds the same ``Catalog``; provenance is not tracked once a record is in.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from cardindex.config.reconciliation import EngineConfig
from cardindex.domain.catalog import Catalog, FinalCatalog
from cardindex.domain.model import NameKey
from cardindex.domain.normalization import normalize, usable
from cardindex.domain.ports.fetching import UpstreamError
from cardindex.domain.queries import dex_range, names_query

from .backfill import backfill_query, plan_backfill
from .pool import run_bounded

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cardindex.domain.model import Key
    from cardindex.domain.ports.fetching import CardSource
    from cardindex.domain.universe import CatalogUniverse

log = getLogger(__name__)

type DexRange = tuple[int, int]


@dataclass(slots=True, frozen=True)
class FetchFailure:
    target: str
    error: str


@dataclass(slots=True)
class RunStats:
    ranges_fetched: list[DexRange] = field(default_factory=list["DexRange"])
    subdivided: list[DexRange] = field(default_factory=list["DexRange"])
    fallback_ranges: list[DexRange] = field(default_factory=list["DexRange"])
    backfilled: list[Key] = field(default_factory=list["Key"])
    failures: list[FetchFailure] = field(default_factory=list[FetchFailure])
    records_seen: int = 0
    dropped: int = 0


@dataclass(slots=True, frozen=True)
class ReconciliationResult:
    catalog: FinalCatalog
    stats: RunStats


def plan_ranges(universe: CatalogUniverse, ranges: Iterable[DexRange]) -> list[DexRange]:
    """Clip configured ranges to the universe and cover any numbers they miss."""

    numbers = universe.numbers()
    if not numbers:
        return []
    low, high = numbers[0], numbers[-1]
    planned: list[DexRange] = []
    for start, end in ranges:
        clipped = (max(start, low), min(end, high))
        if clipped[0] <= clipped[1]:
            planned.append(clipped)

    covered = {n for start, end in planned for n in range(start, end + 1)}
    missing = [n for n in numbers if n not in covered]
    if missing:
        log.warning(
            "Broad ranges miss %s numbers; adding %s-%s", len(missing), missing[0], missing[-1]
        )
        planned.append((missing[0], missing[-1]))
    return planned


@dataclass(slots=True)
class ReconciliationEngine:
    """Build one finalized catalog from an upstream ``CardSource``."""

    source: CardSource
    universe: CatalogUniverse
    config: EngineConfig = field(default_factory=EngineConfig)

    async def run(self) -> ReconciliationResult:
        catalog = Catalog(self.universe)
        stats = RunStats()

        ranges = plan_ranges(self.universe, self.config.broad_ranges)
        log.info("Broad pass over %s ranges", len(ranges))

        async def fetch_range(dex_range_: DexRange) -> None:
            log.info("Fetch range %s-%s", *dex_range_)
            await self._fetch_range_adaptive(catalog, stats, dex_range_, depth=0)

        for outcome in await run_bounded(
            ranges, fetch_range, concurrency=self.config.broad_concurrency
        ):
            if outcome.error is not None:
                start, end = outcome.item
                log.error("Range %s-%s failed hard: %s", start, end, outcome.error)
                stats.failures.append(FetchFailure(f"range {start}-{end}", str(outcome.error)))

        planned = plan_backfill(catalog, self.config.backfill)
        log.info("Backfill via targeted queries for %s keys", len(planned))

        async def backfill(key: Key) -> int:
            return await self._backfill(catalog, stats, key)

        for outcome in await run_bounded(
            planned, backfill, concurrency=self.config.backfill_concurrency
        ):
            if outcome.error is not None:
                log.warning("Backfill failed for %s: %s", outcome.item, outcome.error)
                stats.failures.append(FetchFailure(f"backfill {outcome.item}", str(outcome.error)))
            else:
                stats.backfilled.append(outcome.item)

        stats.dropped = catalog.dropped
        return ReconciliationResult(catalog=catalog.finalize(), stats=stats)

    async def _fetch_range_adaptive(
        self,
        catalog: Catalog,
        stats: RunStats,
        dex_range_: DexRange,
        *,
        depth: int,
    ) -> None:
        start, end = dex_range_
        try:
            raw = await self.source.query_all(dex_range(start, end))
        except UpstreamError as exc:
            if self._can_split(dex_range_, depth):
                mid = (start + end) // 2
                log.warning(
                    "Split range %s-%s -> %s-%s, %s-%s (%s)",
                    start,
                    end,
                    start,
                    mid,
                    mid + 1,
                    end,
                    exc,
                )
                stats.subdivided.append(dex_range_)
                await asyncio.gather(
                    self._fetch_range_adaptive(catalog, stats, (start, mid), depth=depth + 1),
                    self._fetch_range_adaptive(catalog, stats, (mid + 1, end), depth=depth + 1),
                )
                return
            log.warning("Fallback to per-identifier queries for %s-%s (%s)", start, end, exc)
            stats.fallback_ranges.append(dex_range_)
            await self._fetch_identifiers(catalog, stats, dex_range_)
            return

        stats.ranges_fetched.append(dex_range_)
        self._merge(catalog, stats, raw)

    def _can_split(self, dex_range_: DexRange, depth: int) -> bool:
        start, end = dex_range_
        if end - start + 1 <= self.config.min_span:
            return False
        return self.config.max_depth is None or depth < self.config.max_depth

    async def _fetch_identifiers(
        self,
        catalog: Catalog,
        stats: RunStats,
        dex_range_: DexRange,
    ) -> None:
        start, end = dex_range_
        for number in range(start, end + 1):
            name = self.universe.name_for(number)
            if name is None:
                continue
            query = names_query(self.config.name_aliases.get(name, (name,)))
            try:
                raw = await self.source.query_all(query)
            except UpstreamError as exc:
                log.error("Identifier fallback failed for %s (#%s): %s", name, number, exc)
                stats.failures.append(FetchFailure(f"identifier {number}", str(exc)))
                continue
            self._merge(catalog, stats, raw, via=NameKey(name))

    async def _backfill(self, catalog: Catalog, stats: RunStats, key: Key) -> int:
        before = catalog.count(key)
        raw = await self.source.query_all(backfill_query(key, self.config.name_aliases))
        via = key if isinstance(key, NameKey) else None
        self._merge(catalog, stats, raw, via=via)
        added = catalog.count(key) - before
        if added:
            log.info("+ %s: +%s via targeted query", key, added)
        return added

    @staticmethod
    def _merge(
        catalog: Catalog,
        stats: RunStats,
        raw: list[dict[str, Any]],
        *,
        via: NameKey | None = None,
    ) -> None:
        records = [record for record in map(normalize, raw) if usable(record)]
        stats.records_seen += len(records)
        catalog.add_all(records, via=via)
