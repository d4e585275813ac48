"""Read-only audit of persisted counts against live upstream counts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from cardindex.config.reconciliation import VerifyConfig
from cardindex.domain.queries import dex_number, name_phrase

from .reconciliation.pool import run_bounded

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from cardindex.domain.ports.fetching import CardSource
    from cardindex.domain.universe import CatalogUniverse, Species

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GapItem:
    key: str
    saved: int
    expected: int

    @property
    def gap(self) -> int:
        return self.expected - self.saved

    def to_json(self) -> dict[str, object]:
        return {"key": self.key, "saved": self.saved, "expected": self.expected, "gap": self.gap}


@dataclass(frozen=True, slots=True)
class VerificationReport:
    """Snapshot of keys whose persisted count trails upstream. Never authoritative."""

    checked: int
    total_species: int
    items: tuple[GapItem, ...] = field(default_factory=tuple["GapItem", ...])

    @property
    def missing(self) -> int:
        return len(self.items)

    def to_json(self) -> dict[str, object]:
        return {
            "checked": self.checked,
            "totalSpecies": self.total_species,
            "missing": self.missing,
            "items": [item.to_json() for item in self.items],
        }

    def summary_markdown(self, *, top: int = 10) -> str:
        lines = [
            "## Verify vs API",
            "",
            f"- Checked species: **{self.checked}** / {self.total_species}",
            f"- Species with gaps: **{self.missing}**",
            "",
            f"Top {top} gaps:",
        ]
        lines.extend(
            f"- {item.key}: saved={item.saved}, expected={item.expected}, gap={item.gap}"
            for item in self.items[:top]
        )
        return "\n".join(lines) + "\n"


def select_candidates(
    universe: CatalogUniverse,
    saved_counts: Mapping[str, int],
    config: VerifyConfig,
) -> list[Species]:
    """Species worth a live check, low counts and newer or sparse entries first in dex order."""

    candidates = [
        species
        for species in universe
        if saved_counts.get(species.name, 0) < config.low_count_threshold
        or species.number >= config.priority_boundary
        or species.name in config.sparse_names
    ]
    return candidates[: config.max_checks]


def build_report(
    items: Sequence[GapItem],
    *,
    checked: int,
    total_species: int,
) -> VerificationReport:
    gaps = sorted((item for item in items if item.gap > 0), key=lambda item: (-item.gap, item.key))
    return VerificationReport(checked=checked, total_species=total_species, items=tuple(gaps))


@dataclass(slots=True)
class Verifier:
    source: CardSource
    config: VerifyConfig = field(default_factory=VerifyConfig)

    async def verify(
        self,
        universe: CatalogUniverse,
        saved_counts: Mapping[str, int],
        *,
        species: Sequence[Species] | None = None,
    ) -> VerificationReport:
        """Compare ``saved_counts`` (by name) against upstream for the chosen species.

        Either query form may under-count on its own, so the larger of the dex
        and name counts is taken as the expected value.
        """

        if species is None:
            to_check = select_candidates(universe, saved_counts, self.config)
        else:
            to_check = list(species)
        log.info("Verify: checking %s/%s species", len(to_check), len(universe))

        async def check(entry: Species) -> GapItem:
            dex_count, name_count = await asyncio.gather(
                self.source.count(dex_number(entry.number)),
                self.source.count(name_phrase(entry.name)),
            )
            return GapItem(
                key=entry.name,
                saved=saved_counts.get(entry.name, 0),
                expected=max(dex_count, name_count),
            )

        items: list[GapItem] = []
        for outcome in await run_bounded(to_check, check, concurrency=self.config.concurrency):
            if outcome.value is None:
                log.warning("Verify failed for %s: %s", outcome.item.name, outcome.error)
                continue
            item = outcome.value
            if item.gap > 0:
                log.info(
                    "MISSING %s (#%s): saved=%s, expected=%s, gap=%s",
                    item.key,
                    outcome.item.number,
                    item.saved,
                    item.expected,
                    item.gap,
                )
            items.append(item)

        return build_report(items, checked=len(to_check), total_species=len(universe))
