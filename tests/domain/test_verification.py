from __future__ import annotations

import asyncio

from cardindex.config.reconciliation import VerifyConfig
from cardindex.domain.verification import GapItem, Verifier, build_report, select_candidates
from tests.helpers.cards import FakeCardSource, make_universe


def test_verifier_reports_gap_using_larger_count() -> None:
    universe = make_universe({"Pikachu": 25})
    source = FakeCardSource(
        counts={"nationalPokedexNumbers:25": 10, 'name:"Pikachu"': 13},
    )

    report = asyncio.run(
        Verifier(source=source).verify(universe, {"Pikachu": 10}, species=list(universe))
    )

    assert report.to_json() == {
        "checked": 1,
        "totalSpecies": 1,
        "missing": 1,
        "items": [{"key": "Pikachu", "saved": 10, "expected": 13, "gap": 3}],
    }


def test_verifier_excludes_species_saved_at_or_above_expected() -> None:
    universe = make_universe({"Pikachu": 25, "Raichu": 26})
    source = FakeCardSource(
        counts={
            "nationalPokedexNumbers:25": 13,
            "nationalPokedexNumbers:26": 4,
        },
    )

    report = asyncio.run(
        Verifier(source=source).verify(
            universe, {"Pikachu": 13, "Raichu": 7}, species=list(universe)
        )
    )

    assert report.checked == 2
    assert report.missing == 0
    assert report.items == ()


def test_verifier_skips_species_whose_counts_fail() -> None:
    universe = make_universe({"Pikachu": 25, "Raichu": 26})
    source = FakeCardSource(
        counts={"nationalPokedexNumbers:26": 5},
        failing_counts={'name:"Pikachu"'},
    )

    report = asyncio.run(Verifier(source=source).verify(universe, {}, species=list(universe)))

    assert [item.key for item in report.items] == ["Raichu"]
    assert report.checked == 2


def test_select_candidates_prefers_low_new_and_sparse_species() -> None:
    universe = make_universe({"Bulbasaur": 1, "Pikachu": 25, "Mr. Mime": 122, "Sprigatito": 906})
    saved = {"Bulbasaur": 1, "Pikachu": 40, "Mr. Mime": 40, "Sprigatito": 40}
    config = VerifyConfig(sparse_names=frozenset({"Mr. Mime"}))

    chosen = select_candidates(universe, saved, config)

    assert [species.name for species in chosen] == ["Bulbasaur", "Mr. Mime", "Sprigatito"]
    limited = VerifyConfig(max_checks=1, sparse_names=frozenset({"Mr. Mime"}))
    assert [s.name for s in select_candidates(universe, saved, limited)] == ["Bulbasaur"]


def test_build_report_sorts_by_gap_then_key_and_renders_summary() -> None:
    report = build_report(
        [GapItem("B", 1, 4), GapItem("A", 0, 3), GapItem("C", 0, 9), GapItem("D", 5, 5)],
        checked=4,
        total_species=10,
    )

    assert [item.key for item in report.items] == ["C", "A", "B"]
    summary = report.summary_markdown(top=2)
    assert summary.startswith("## Verify vs API")
    assert "- C: saved=0, expected=9, gap=9" in summary
    assert "- B:" not in summary
