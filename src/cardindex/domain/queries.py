"""Search expressions understood by the ``CardSource`` port."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def dex_range(start: int, end: int) -> str:
    return f"nationalPokedexNumbers:[{start} TO {end}]"


def dex_number(number: int) -> str:
    return f"nationalPokedexNumbers:{number}"


def name_phrase(name: str) -> str:
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'name:"{escaped}"'


def any_of(expressions: Iterable[str]) -> str:
    parts = list(dict.fromkeys(expressions))
    if not parts:
        raise ValueError("any_of() needs at least one expression")
    if len(parts) == 1:
        return parts[0]
    return "(" + " OR ".join(parts) + ")"


def names_query(names: Iterable[str]) -> str:
    return any_of(name_phrase(name) for name in names)
