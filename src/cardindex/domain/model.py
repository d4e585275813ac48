"""Core value types: records, keys and bucket ordering."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

SEQUENCE_PAD_WIDTH = 4


@dataclass(frozen=True, slots=True, order=True)
class DexKey:
    """Numeric catalog key (national dex number)."""

    number: int

    def __str__(self) -> str:
        return str(self.number)


@dataclass(frozen=True, slots=True, order=True)
class NameKey:
    """Display-name catalog key."""

    name: str

    def __str__(self) -> str:
        return self.name


type Key = DexKey | NameKey


def key_sort_key(key: Key) -> tuple[int, int, str]:
    """Numeric keys first in ascending order, then names."""

    if isinstance(key, DexKey):
        return (0, key.number, "")
    return (1, 0, key.name)


@dataclass(frozen=True, slots=True)
class Record:
    """One catalogued card, reduced to what the index persists.

    ``payload`` is the persisted JSON shape; the other attributes are extracted
    from it once so ordering and routing never have to look inside the payload.
    """

    id: str
    display_name: str = ""
    numeric_keys: frozenset[int] = frozenset()
    release_date: date | None = None
    number: str = ""
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def ordering_date(self) -> date:
        return self.release_date or date.min

    @property
    def padded_number(self) -> str:
        return self.number.rjust(SEQUENCE_PAD_WIDTH, "0")


def order_bucket(records: Iterable[Record]) -> list[Record]:
    """Newest release first, then card number descending, then id ascending."""

    by_id = sorted(records, key=lambda record: record.id)
    # list.sort is stable even with reverse=True, so the id order survives ties.
    by_id.sort(key=lambda record: (record.ordering_date, record.padded_number), reverse=True)
    return by_id


def dedupe_records(records: Iterable[Record]) -> list[Record]:
    """Drop later records whose id was already seen."""

    seen: set[str] = set()
    unique: list[Record] = []
    for record in records:
        if not record.id or record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


def finalize_bucket(records: Iterable[Record]) -> tuple[Record, ...]:
    return tuple(order_bucket(dedupe_records(records)))
