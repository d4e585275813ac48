from __future__ import annotations

from datetime import date

from cardindex.domain.model import (
    DexKey,
    NameKey,
    Record,
    dedupe_records,
    finalize_bucket,
    key_sort_key,
    order_bucket,
)


def _record(record_id: str, *, released: date | None = None, number: str = "1") -> Record:
    return Record(id=record_id, release_date=released, number=number)


def test_order_bucket_newest_release_first() -> None:
    old = _record("old", released=date(1999, 1, 9))
    new = _record("new", released=date(2023, 3, 31))
    undated = _record("undated")

    assert [r.id for r in order_bucket([old, undated, new])] == ["new", "old", "undated"]


def test_order_bucket_compares_numbers_zero_padded() -> None:
    day = date(2020, 5, 1)
    nine = _record("a", released=day, number="9")
    forty = _record("b", released=day, number="40")
    promo = _record("c", released=day, number="SWSH040")

    ordered = order_bucket([nine, forty, promo])

    assert [r.id for r in ordered] == ["c", "b", "a"]


def test_order_bucket_breaks_ties_by_id_ascending() -> None:
    day = date(2020, 5, 1)
    b = _record("b", released=day, number="12")
    a = _record("a", released=day, number="12")

    assert [r.id for r in order_bucket([b, a])] == ["a", "b"]
    assert [r.id for r in order_bucket([a, b])] == ["a", "b"]


def test_dedupe_keeps_first_occurrence() -> None:
    first = Record(id="x", display_name="first")
    second = Record(id="x", display_name="second")

    unique = dedupe_records([first, second, Record(id="y")])

    assert [r.display_name for r in unique if r.id == "x"] == ["first"]
    assert len(unique) == 2


def test_dedupe_skips_records_without_id() -> None:
    assert dedupe_records([Record(id=""), Record(id="a")]) == [Record(id="a")]


def test_finalize_bucket_is_idempotent() -> None:
    records = [
        _record("a", released=date(2021, 1, 1)),
        _record("b", released=date(2022, 1, 1)),
        _record("a", released=date(2021, 1, 1)),
    ]

    once = finalize_bucket(records)

    assert finalize_bucket(once) == once
    assert finalize_bucket(records + list(once)) == once


def test_key_sort_key_puts_numbers_before_names() -> None:
    keys = [NameKey("Mew"), DexKey(151), NameKey("Abra"), DexKey(2)]

    assert sorted(keys, key=key_sort_key) == [
        DexKey(2),
        DexKey(151),
        NameKey("Abra"),
        NameKey("Mew"),
    ]
    assert str(DexKey(25)) == "25"
    assert str(NameKey("Pikachu")) == "Pikachu"
