"""Artifact and data file location helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_DATA_DIR: Final[str] = "public/cards"
DEFAULT_UNIVERSE_FILE: Final[str] = "data/pokedex.json"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"

NAME_DIR: Final[str] = "name"
DEX_DIR: Final[str] = "dex"
PRICES_DIR: Final[str] = "prices/card"
INDEX_FILENAME: Final[str] = "index.json"
VERIFY_FILENAME: Final[str] = "_verify.json"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    universe_file: Path
    http_cache_filename: str = HTTP_CACHE_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def resolve_universe_file(self) -> Path:
        return self.universe_file.expanduser().resolve()

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        base = self.universe_file.expanduser().resolve().parent
        if ensure:
            base.mkdir(parents=True, exist_ok=True)
        return base / self.http_cache_filename


def get_storage_config() -> StorageConfig:
    data_dir = os.getenv("CARDINDEX_DATA_DIR") or DEFAULT_DATA_DIR
    universe_file = os.getenv("CARDINDEX_UNIVERSE_FILE") or DEFAULT_UNIVERSE_FILE
    return StorageConfig(data_dir=Path(data_dir), universe_file=Path(universe_file))
