"""Coverage gap detection after the broad pass."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardindex.domain.model import DexKey, NameKey
from cardindex.domain.queries import dex_number, names_query

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardindex.config.reconciliation import BackfillPolicy
    from cardindex.domain.catalog import Catalog
    from cardindex.domain.model import Key


def needs_backfill(key: Key, *, count: int, number: int, policy: BackfillPolicy) -> bool:
    if isinstance(key, NameKey) and key.name in policy.sparse_names:
        return True
    if isinstance(key, DexKey) and key.number in policy.sparse_numbers:
        return True
    return number >= policy.threshold_boundary and count < policy.min_records


def plan_backfill(catalog: Catalog, policy: BackfillPolicy) -> list[Key]:
    """Keys that get one targeted query, in universe order (numbers, then names)."""

    planned: list[Key] = []
    universe = catalog.universe
    for key in catalog.keys():
        if isinstance(key, DexKey):
            number = key.number
        else:
            number = universe.number_for(key.name) or 0
        if needs_backfill(key, count=catalog.count(key), number=number, policy=policy):
            planned.append(key)
    return planned


def backfill_query(key: Key, aliases: Mapping[str, tuple[str, ...]]) -> str:
    if isinstance(key, DexKey):
        return dex_number(key.number)
    return names_query(aliases.get(key.name, (key.name,)))
