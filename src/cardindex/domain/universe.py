"""The closed set of expected catalog keys."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .model import DexKey, NameKey

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from pathlib import Path

    from .model import Key


class UniverseError(ValueError):
    """Raised when the catalog universe cannot be loaded or is inconsistent."""


@dataclass(frozen=True, slots=True)
class Species:
    name: str
    number: int

    @property
    def name_key(self) -> NameKey:
        return NameKey(self.name)

    @property
    def dex_key(self) -> DexKey:
        return DexKey(self.number)


class CatalogUniverse:
    """Bidirectional name <-> number table, iterated in number order."""

    def __init__(self, species: Iterable[Species]) -> None:
        by_name: dict[str, Species] = {}
        by_number: dict[int, Species] = {}
        for entry in species:
            if entry.number < 1:
                raise UniverseError(f"Invalid number {entry.number} for {entry.name!r}")
            if not entry.name.strip():
                raise UniverseError(f"Blank name for number {entry.number}")
            if entry.name in by_name:
                raise UniverseError(f"Duplicate name {entry.name!r}")
            if entry.number in by_number:
                existing = by_number[entry.number].name
                raise UniverseError(
                    f"Number {entry.number} assigned to both {existing!r} and {entry.name!r}"
                )
            by_name[entry.name] = entry
            by_number[entry.number] = entry
        self._by_name = by_name
        self._by_number = dict(sorted(by_number.items()))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> CatalogUniverse:
        species: list[Species] = []
        for name, number in mapping.items():
            if isinstance(number, bool) or not isinstance(number, int):
                raise UniverseError(f"Number for {name!r} must be an integer, got {number!r}")
            species.append(Species(name=name, number=number))
        return cls(species)

    def __len__(self) -> int:
        return len(self._by_number)

    def __iter__(self) -> Iterator[Species]:
        return iter(self._by_number.values())

    def __contains__(self, key: object) -> bool:
        if isinstance(key, DexKey):
            return key.number in self._by_number
        if isinstance(key, NameKey):
            return key.name in self._by_name
        return False

    def name_for(self, number: int) -> str | None:
        entry = self._by_number.get(number)
        return entry.name if entry else None

    def number_for(self, name: str) -> int | None:
        entry = self._by_name.get(name)
        return entry.number if entry else None

    def numbers(self) -> list[int]:
        return list(self._by_number)

    def keys(self) -> list[Key]:
        """Every expected key: all numbers, then all names, both in number order."""

        dex_keys: list[Key] = [entry.dex_key for entry in self]
        name_keys: list[Key] = [entry.name_key for entry in self]
        return dex_keys + name_keys

    def to_mapping(self) -> dict[str, int]:
        return {entry.name: entry.number for entry in self}


def load_universe(path: Path) -> CatalogUniverse:
    """Load ``{"Bulbasaur": 1, ...}`` from disk; any problem is fatal for a run."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise UniverseError(f"Universe file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise UniverseError(f"Cannot read universe file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise UniverseError(f"Universe file {path} must hold a JSON object")
    universe = CatalogUniverse.from_mapping(raw)
    if not len(universe):
        raise UniverseError(f"Universe file {path} is empty")
    return universe


def save_universe(path: Path, universe: CatalogUniverse) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(universe.to_mapping(), ensure_ascii=False, indent=2)
    path.write_text(content + "\n", encoding="utf-8")
