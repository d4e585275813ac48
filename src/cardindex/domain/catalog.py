"""Per-key accumulation of records for one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .model import DexKey, NameKey, finalize_bucket, key_sort_key

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from .model import Key, Record
    from .universe import CatalogUniverse


@dataclass(slots=True)
class _Slot:
    records: list[Record] = field(default_factory=list["Record"])

    def append(self, record: Record) -> None:
        self.records.append(record)


class Catalog:
    """Append-only record lists, one slot per expected key.

    A catalog is created for one run, filled concurrently by workers on a
    single event loop, finalized once and then discarded. Slots are created up
    front for every key of the universe, so finalization always yields every
    expected key. Appends never await, which keeps each slot consistent without
    locks; slots are independent of one another.
    """

    def __init__(self, universe: CatalogUniverse) -> None:
        self.universe = universe
        self._slots: dict[Key, _Slot] = {key: _Slot() for key in universe.keys()}
        self.dropped = 0

    def add(self, record: Record, *, via: NameKey | None = None) -> bool:
        """Route ``record`` to its keys; return False when nothing matched.

        Dex slots receive the record for every in-universe numeric key. Exactly
        one name slot receives it: ``via`` for records that came from a targeted
        name query, otherwise the name of the lowest in-universe number.
        """

        numbers = sorted(n for n in record.numeric_keys if DexKey(n) in self._slots)
        for number in numbers:
            self._slots[DexKey(number)].append(record)

        name_key = via
        if name_key is None and numbers:
            name = self.universe.name_for(numbers[0])
            name_key = NameKey(name) if name is not None else None
        if name_key is not None and name_key in self._slots:
            self._slots[name_key].append(record)
            return True

        if not numbers:
            self.dropped += 1
            return False
        return True

    def add_all(self, records: Iterable[Record], *, via: NameKey | None = None) -> int:
        return sum(1 for record in records if self.add(record, via=via))

    def count(self, key: Key) -> int:
        """Distinct record ids accumulated so far for ``key``."""

        slot = self._slots.get(key)
        if slot is None:
            return 0
        return len({record.id for record in slot.records})

    def keys(self) -> list[Key]:
        return list(self._slots)

    def finalize(self) -> FinalCatalog:
        return FinalCatalog(
            buckets={key: finalize_bucket(slot.records) for key, slot in self._slots.items()}
        )


@dataclass(frozen=True, slots=True)
class FinalCatalog:
    """Deduplicated, ordered bucket for every expected key."""

    buckets: Mapping[Key, tuple[Record, ...]]

    def __len__(self) -> int:
        return len(self.buckets)

    def __iter__(self) -> Iterator[tuple[Key, tuple[Record, ...]]]:
        for key in sorted(self.buckets, key=key_sort_key):
            yield key, self.buckets[key]

    def bucket(self, key: Key) -> tuple[Record, ...]:
        return self.buckets.get(key, ())

    def counts(self) -> dict[Key, int]:
        return {key: len(bucket) for key, bucket in self}

    def name_counts(self) -> dict[str, int]:
        return {key.name: len(bucket) for key, bucket in self if isinstance(key, NameKey)}

    def empty_keys(self) -> list[Key]:
        return [key for key, bucket in self if not bucket]
