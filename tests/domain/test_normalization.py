from __future__ import annotations

from datetime import date

import pytest

from cardindex.domain.normalization import (
    build_payload,
    extract_numeric_keys,
    normalize,
    parse_release_date,
    usable,
)


def test_normalize_extracts_keys_date_and_payload() -> None:
    raw = {
        "id": "sv3pt5-1",
        "name": "Bulbasaur",
        "number": "1",
        "nationalPokedexNumbers": [1],
        "set": {"name": "151", "series": "Scarlet & Violet", "releaseDate": "2023/09/22"},
        "images": {"small": "s.png", "large": "l.png", "extra": "x"},
        "tcgplayer": {"url": "https://example.test", "prices": {"normal": {"market": 0.5}}},
        "attacks": [{"name": "Vine Whip"}],
    }

    record = normalize(raw)

    assert record.id == "sv3pt5-1"
    assert record.display_name == "Bulbasaur"
    assert record.numeric_keys == frozenset({1})
    assert record.release_date == date(2023, 9, 22)
    assert record.payload["images"] == {"small": "s.png", "large": "l.png"}
    assert record.payload["tcgplayer"] == {"prices": {"normal": {"market": 0.5}}}
    assert "attacks" not in record.payload
    assert usable(record)


def test_extract_numeric_keys_reads_legacy_locations() -> None:
    raw = {
        "nationalPokedexNumbers": [985, "986", -1, True, "x"],
        "_raw": {"pokedexNumbers": [987.0]},
        "dexId": 988,
    }

    assert extract_numeric_keys(raw) == frozenset({985, 986, 987, 988})


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2023/09/22", date(2023, 9, 22)),
        ("2023-09-22", date(2023, 9, 22)),
        ("2023/13/01", None),
        ("soon", None),
        (None, None),
    ],
)
def test_parse_release_date(value: object, expected: date | None) -> None:
    assert parse_release_date(value) == expected


def test_normalize_tolerates_malformed_input() -> None:
    record = normalize({"id": None, "nationalPokedexNumbers": "nope", "set": "broken"})

    assert record.id == ""
    assert record.numeric_keys == frozenset()
    assert record.release_date is None
    assert not usable(record)
    assert normalize(["not", "a", "card"]).id == ""


def test_build_payload_skips_missing_and_null_fields() -> None:
    assert build_payload({"id": "a", "rarity": None, "cardmarket": "n/a"}) == {"id": "a"}


@pytest.mark.parametrize("value", ["²", "٣", "1.5", "-3", ""])
def test_non_ascii_and_signed_digit_strings_are_dropped(value: str) -> None:
    record = normalize({"id": "x", "nationalPokedexNumbers": [value, "7"]})

    assert record.numeric_keys == frozenset({7})
