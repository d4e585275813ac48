from __future__ import annotations

import json
from pathlib import Path

import pytest

from cardindex.adapters.filesystem import (
    ArtifactStore,
    ArtifactStoreError,
    dex_filenames,
    encode_name,
)
from cardindex.domain.catalog import Catalog, FinalCatalog
from cardindex.domain.model import DexKey, NameKey
from cardindex.domain.normalization import normalize
from cardindex.domain.universe import CatalogUniverse
from cardindex.domain.verification import GapItem, build_report
from tests.helpers.cards import make_card, make_universe


def _catalog_with(*cards: dict[str, object]) -> tuple[CatalogUniverse, FinalCatalog]:
    universe = make_universe({"Nidoran♀": 29, "Farfetch'd": 83})
    catalog = Catalog(universe)
    catalog.add_all(normalize(card) for card in cards)
    return universe, catalog.finalize()


def test_dex_filenames_cover_every_padding() -> None:
    assert dex_filenames(29) == ["29.json", "029.json", "0029.json"]
    assert dex_filenames(1025) == ["1025.json"]
    assert dex_filenames(150) == ["150.json", "0150.json"]


def test_encode_name_matches_uri_component_encoding() -> None:
    assert encode_name("Farfetch'd") == "Farfetch'd"
    assert encode_name("Mr. Mime") == "Mr.%20Mime"
    assert encode_name("Nidoran♀") == "Nidoran%E2%99%80"
    assert encode_name("Type: Null") == "Type%3A%20Null"


def test_persist_writes_identical_padded_dex_files(tmp_path: Path) -> None:
    _, final = _catalog_with(make_card("nido-1", 29, name="Nidoran ♀"))
    store = ArtifactStore(tmp_path)

    result = store.persist(final)

    assert result.ok
    contents = {path.name: path.read_bytes() for path in store.dex_paths(29)}
    assert set(contents) == {"29.json", "029.json", "0029.json"}
    assert len(set(contents.values())) == 1
    cards = json.loads(contents["0029.json"].decode("utf-8"))
    assert [card["id"] for card in cards] == ["nido-1"]
    assert "Nidoran ♀" in contents["29.json"].decode("utf-8")


def test_persist_writes_empty_buckets_and_index(tmp_path: Path) -> None:
    _, final = _catalog_with(make_card("nido-1", 29))
    store = ArtifactStore(tmp_path)

    store.persist(final)

    assert json.loads(store.name_path("Farfetch'd").read_text(encoding="utf-8")) == []
    assert json.loads((store.dex_dir / "083.json").read_text(encoding="utf-8")) == []
    index = json.loads((tmp_path / "index.json").read_text(encoding="utf-8"))
    assert index == [
        {"key": 29, "count": 1},
        {"key": 83, "count": 0},
        {"key": "Farfetch'd", "count": 0},
        {"key": "Nidoran♀", "count": 1},
    ]


def test_persist_continues_after_a_failed_write(tmp_path: Path) -> None:
    _, final = _catalog_with(make_card("nido-1", 29), make_card("duck-1", 83))
    store = ArtifactStore(tmp_path)
    store.ensure_dirs()
    # A directory squatting on the target path makes that single replace fail.
    blocker = store.dex_dir / "029.json"
    blocker.mkdir()
    (blocker / "keep").write_text("x", encoding="utf-8")

    result = store.persist(final)

    assert not result.ok
    assert [error.path for error in result.failed] == [blocker]
    duck = json.loads((store.dex_dir / "0083.json").read_text(encoding="utf-8"))
    assert duck[0]["id"] == "duck-1"
    assert (tmp_path / "index.json").is_file()
    assert not list(store.dex_dir.glob(".*.tmp"))


def test_ensure_dirs_failure_is_fatal(tmp_path: Path) -> None:
    root = tmp_path / "file"
    root.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ArtifactStoreError):
        ArtifactStore(root).ensure_dirs()


def test_saved_counts_and_bucket_reading(tmp_path: Path) -> None:
    universe, final = _catalog_with(make_card("nido-1", 29), make_card("nido-2", 29))
    store = ArtifactStore(tmp_path)
    store.persist(final)
    store.name_path("Farfetch'd").write_text("{broken", encoding="utf-8")

    assert store.saved_counts(universe) == {"Nidoran♀": 2, "Farfetch'd": 0}
    assert [card["id"] for card in store.read_bucket(DexKey(29))] == ["nido-1", "nido-2"]
    assert {path.name for path in store.iter_name_artifacts()} == {
        "Nidoran%E2%99%80.json",
        "Farfetch'd.json",
    }
    assert store.read_bucket(NameKey("Missing")) == []


def test_write_report_and_price_history(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    report = build_report([GapItem("Mew", 1, 4)], checked=1, total_species=151)

    path = store.write_report(report)
    store.ensure_dirs(store.prices_dir)
    price_path = store.write_price_history("base1-4", {"id": "base1-4"})

    assert json.loads(path.read_text(encoding="utf-8"))["items"][0]["gap"] == 3
    assert price_path == tmp_path / "prices" / "card" / "base1-4.json"
    assert store.read_json(price_path)["id"] == "base1-4"
