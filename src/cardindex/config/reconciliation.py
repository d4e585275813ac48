"""Tuning knobs for catalog reconciliation and verification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

# Generation boundaries of the national dex. Broad queries stay below the
# upstream's comfortable result size when split this way.
DEFAULT_BROAD_RANGES: tuple[tuple[int, int], ...] = (
    (1, 151),
    (152, 251),
    (252, 386),
    (387, 493),
    (494, 649),
    (650, 721),
    (722, 809),
    (810, 905),
    (906, 1025),
)

# Names that broad range queries historically under-count: paradox forms,
# masked forms and names with punctuation that upstream tags inconsistently.
DEFAULT_SPARSE_NAMES: frozenset[str] = frozenset(
    {
        "Great Tusk",
        "Scream Tail",
        "Brute Bonnet",
        "Flutter Mane",
        "Slither Wing",
        "Sandy Shocks",
        "Roaring Moon",
        "Walking Wake",
        "Raging Bolt",
        "Gouging Fire",
        "Iron Treads",
        "Iron Bundle",
        "Iron Hands",
        "Iron Jugulis",
        "Iron Moth",
        "Iron Thorns",
        "Iron Valiant",
        "Iron Leaves",
        "Iron Crown",
        "Iron Boulder",
        "Ogerpon",
        "Mr. Mime",
        "Mr. Rime",
        "Mime Jr.",
        "Farfetch'd",
        "Sirfetch'd",
        "Ho-Oh",
        "Type: Null",
        "Jangmo-o",
        "Hakamo-o",
        "Kommo-o",
        "Porygon-Z",
    }
)

DEFAULT_SPARSE_NUMBERS: frozenset[int] = frozenset(
    {
        29, 32, 83, 122, 439, 669, 772, 785, 786, 787, 788, 865, 866,
        984, 985, 986, 987, 988, 989, 990, 991, 992, 993, 994, 995,
        1005, 1006, 1009, 1010, 1020, 1021, 1022, 1023,
    }
)  # fmt: skip

DEFAULT_NAME_ALIASES: Mapping[str, tuple[str, ...]] = {
    "Ogerpon": (
        "Ogerpon",
        "Ogerpon ex",
        "Ogerpon (Teal Mask)",
        "Ogerpon (Hearthflame Mask)",
        "Ogerpon (Wellspring Mask)",
        "Ogerpon (Cornerstone Mask)",
    ),
}


@dataclass(frozen=True, slots=True)
class BackfillPolicy:
    """Which keys get a targeted query after the broad pass."""

    min_records: int = 6
    threshold_boundary: int = 906
    sparse_names: frozenset[str] = DEFAULT_SPARSE_NAMES
    sparse_numbers: frozenset[int] = DEFAULT_SPARSE_NUMBERS


@dataclass(frozen=True, slots=True)
class EngineConfig:
    broad_ranges: tuple[tuple[int, int], ...] = DEFAULT_BROAD_RANGES
    broad_concurrency: int = 3
    backfill_concurrency: int = 3
    min_span: int = 10
    max_depth: int | None = 4
    backfill: BackfillPolicy = field(default_factory=BackfillPolicy)
    name_aliases: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_NAME_ALIASES)
    )

    def __post_init__(self) -> None:
        if self.broad_concurrency < 1 or self.backfill_concurrency < 1:
            raise ConfigurationError("Worker pool sizes must be positive")
        if self.min_span < 1:
            raise ConfigurationError("min_span must be at least 1")
        if self.max_depth is not None and self.max_depth < 0:
            raise ConfigurationError("max_depth must be non-negative")
        for start, end in self.broad_ranges:
            if start < 1 or end < start:
                raise ConfigurationError(f"Invalid broad range {start}-{end}")


@dataclass(frozen=True, slots=True)
class VerifyConfig:
    max_checks: int = 300
    concurrency: int = 5
    low_count_threshold: int = 3
    priority_boundary: int = 906
    sparse_names: frozenset[str] = DEFAULT_SPARSE_NAMES - {"Ogerpon"}

    def __post_init__(self) -> None:
        if self.max_checks < 0:
            raise ConfigurationError("max_checks must be non-negative")
        if self.concurrency < 1:
            raise ConfigurationError("Verifier concurrency must be positive")
