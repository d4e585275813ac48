"""Catalog reconciliation: bounded fetching, gap detection and finalization."""

from __future__ import annotations

from .backfill import backfill_query, needs_backfill, plan_backfill
from .engine import (
    FetchFailure,
    ReconciliationEngine,
    ReconciliationResult,
    RunStats,
    plan_ranges,
)
from .pool import TaskOutcome, run_bounded

__all__ = [
    "FetchFailure",
    "ReconciliationEngine",
    "ReconciliationResult",
    "RunStats",
    "TaskOutcome",
    "backfill_query",
    "needs_backfill",
    "plan_backfill",
    "plan_ranges",
    "run_bounded",
]
