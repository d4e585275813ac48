"""JSON artifact layout on disk: per-key buckets, index, reports and prices."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from cardindex.adapters.pokemontcg.schema import parse_upstream_envelope
from cardindex.config.storage import (
    DEX_DIR,
    INDEX_FILENAME,
    NAME_DIR,
    PRICES_DIR,
    VERIFY_FILENAME,
)
from cardindex.domain.model import DexKey, NameKey

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cardindex.domain.catalog import FinalCatalog
    from cardindex.domain.model import Key, Record
    from cardindex.domain.universe import CatalogUniverse
    from cardindex.domain.verification import VerificationReport

log = getLogger(__name__)

# Characters JavaScript's encodeURIComponent leaves alone; consumers build
# URLs with it, so filenames must match byte for byte.
_URI_COMPONENT_SAFE = "-_.!~*'()"


class ArtifactStoreError(RuntimeError):
    """Raised when the artifact directories cannot be prepared."""


class ArtifactWriteError(OSError):
    """A single artifact could not be written; the batch carries on."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot write {path}: {cause}")
        self.path = path
        self.cause = cause


def encode_name(name: str) -> str:
    return quote(name, safe=_URI_COMPONENT_SAFE)


def dex_filenames(number: int) -> list[str]:
    """Unpadded, 3-digit and 4-digit spellings, without duplicates."""

    spellings = (str(number), f"{number:03d}", f"{number:04d}")
    return [f"{spelling}.json" for spelling in dict.fromkeys(spellings)]


def encode_bucket(records: tuple[Record, ...] | list[Record]) -> bytes:
    payload = [dict(record.payload) for record in records]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _pretty(payload: object) -> bytes:
    return (json.dumps(payload, ensure_ascii=False, indent=2) + "\n").encode("utf-8")


@dataclass(slots=True)
class PersistResult:
    written: int = 0
    failed: list[ArtifactWriteError] = field(default_factory=list[ArtifactWriteError])

    @property
    def ok(self) -> bool:
        return not self.failed


class ArtifactStore:
    """Reads and writes the static artifact tree rooted at ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.name_dir = root / NAME_DIR
        self.dex_dir = root / DEX_DIR
        self.prices_dir = root / PRICES_DIR

    def ensure_dirs(self, *extra: Path) -> None:
        for directory in (self.root, self.name_dir, self.dex_dir, *extra):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ArtifactStoreError(f"Cannot create {directory}: {exc}") from exc

    def name_path(self, name: str) -> Path:
        return self.name_dir / f"{encode_name(name)}.json"

    def dex_paths(self, number: int) -> list[Path]:
        return [self.dex_dir / filename for filename in dex_filenames(number)]

    def paths_for(self, key: Key) -> list[Path]:
        if isinstance(key, DexKey):
            return self.dex_paths(key.number)
        return [self.name_path(key.name)]

    def persist(self, catalog: FinalCatalog) -> PersistResult:
        """Write every bucket, then the summary index.

        Each artifact is replaced atomically, so a failed write leaves the
        previous run's file in place and the remaining keys still go out.
        """

        self.ensure_dirs()
        result = PersistResult()
        index: list[dict[str, object]] = []
        for key, bucket in catalog:
            content = encode_bucket(bucket)
            for path in self.paths_for(key):
                self._write(path, content, result)
            index.append(
                {"key": key.number if isinstance(key, DexKey) else key.name, "count": len(bucket)}
            )
        self._write(self.root / INDEX_FILENAME, _pretty(index), result)
        log.info(
            "Persisted %s artifacts for %s keys (%s failed)",
            result.written,
            len(catalog),
            len(result.failed),
        )
        return result

    def write_report(self, report: VerificationReport) -> Path:
        self.ensure_dirs()
        path = self.root / VERIFY_FILENAME
        _atomic_write(path, _pretty(report.to_json()))
        return path

    def read_json(self, path: Path) -> Any:
        """Decoded JSON at ``path``, or None when missing or unreadable."""

        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            log.warning("Unreadable artifact %s: %s", path, exc)
            return None

    def read_cards(self, path: Path) -> list[dict[str, Any]]:
        return parse_upstream_envelope(self.read_json(path)).records

    def read_bucket(self, key: Key) -> list[dict[str, Any]]:
        return self.read_cards(self.paths_for(key)[-1])

    def saved_counts(self, universe: CatalogUniverse) -> dict[str, int]:
        """Persisted record count per name; a missing or broken file counts as 0."""

        return {
            species.name: len(self.read_bucket(NameKey(species.name))) for species in universe
        }

    def iter_name_artifacts(self) -> Iterator[Path]:
        if not self.name_dir.is_dir():
            return
        for path in sorted(self.name_dir.glob("*.json")):
            if path.name != INDEX_FILENAME:
                yield path

    def price_path(self, card_id: str) -> Path:
        return self.prices_dir / f"{encode_name(card_id)}.json"

    def write_price_history(self, card_id: str, history: dict[str, Any]) -> Path:
        path = self.price_path(card_id)
        _atomic_write(path, json.dumps(history, ensure_ascii=False).encode("utf-8"))
        return path

    def _write(self, path: Path, content: bytes, result: PersistResult) -> None:
        try:
            _atomic_write(path, content)
        except OSError as exc:
            error = ArtifactWriteError(path, exc)
            log.error("%s", error)
            result.failed.append(error)
            return
        result.written += 1


def _atomic_write(path: Path, content: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        Path(tmp_name).replace(path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
