"""Reduce raw upstream cards to persisted records.

Normalization is tolerant by policy: malformed numbers, dates or nested
objects are dropped quietly because upstream noise is expected, and nothing
in this module raises for bad input.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date
from typing import Any

from .model import Record

# Current and legacy places where upstream (or older persisted artifacts) keep
# national dex numbers.
_NUMBER_LIST_PATHS: tuple[tuple[str, ...], ...] = (
    ("nationalPokedexNumbers",),
    ("_raw", "nationalPokedexNumbers"),
    ("pokedexNumbers",),
    ("_raw", "pokedexNumbers"),
)
_NUMBER_SCALAR_PATHS: tuple[tuple[str, ...], ...] = (("dexId",), ("dex",))

_RELEASE_DATE_PATHS: tuple[tuple[str, ...], ...] = (
    ("set", "releaseDate"),
    ("_raw", "set", "releaseDate"),
    ("releaseDate",),
)

# Persisted shape: top-level field -> nested fields to keep (None keeps the value whole).
PAYLOAD_FIELDS: tuple[tuple[str, tuple[str, ...] | None], ...] = (
    ("id", None),
    ("name", None),
    ("images", ("small", "large")),
    ("set", ("name", "series", "releaseDate")),
    ("number", None),
    ("rarity", None),
    ("subtypes", None),
    ("nationalPokedexNumbers", None),
    ("tcgplayer", ("prices",)),
    ("cardmarket", ("prices",)),
)

_DATE_RE = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})")


def _dig(raw: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = raw
    for part in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


def _coerce_number(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        return int(text) if text.isascii() and text.isdigit() else None
    return None


def extract_numeric_keys(raw: Mapping[str, Any]) -> frozenset[int]:
    numbers: set[int] = set()
    for path in _NUMBER_LIST_PATHS:
        values = _dig(raw, path)
        if not isinstance(values, list):
            continue
        for value in values:
            number = _coerce_number(value)
            if number is not None:
                numbers.add(number)
    for path in _NUMBER_SCALAR_PATHS:
        value = _dig(raw, path)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            numbers.add(value)
    return frozenset(numbers)


def parse_release_date(value: object) -> date | None:
    if not isinstance(value, str):
        return None
    match = _DATE_RE.match(value.strip())
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_release_date(raw: Mapping[str, Any]) -> date | None:
    for path in _RELEASE_DATE_PATHS:
        parsed = parse_release_date(_dig(raw, path))
        if parsed is not None:
            return parsed
    return None


def build_payload(raw: Mapping[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for name, nested in PAYLOAD_FIELDS:
        if name not in raw or raw[name] is None:
            continue
        value = raw[name]
        if nested is None:
            payload[name] = value
            continue
        if not isinstance(value, Mapping):
            continue
        payload[name] = {part: value[part] for part in nested if part in value}
    return payload


def _text(value: object) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def normalize(raw: object) -> Record:
    """Build a ``Record`` from a raw upstream card. Never raises.

    A record without an id comes back with ``id == ""``; callers filter those
    with :func:`usable` before touching the catalog.
    """

    if not isinstance(raw, Mapping):
        return Record(id="")
    return Record(
        id=_text(raw.get("id")).strip(),
        display_name=_text(raw.get("name")),
        numeric_keys=extract_numeric_keys(raw),
        release_date=extract_release_date(raw),
        number=_text(raw.get("number")),
        payload=build_payload(raw),
    )


def usable(record: Record) -> bool:
    return bool(record.id)
