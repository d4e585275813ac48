"""Bounded worker pool over a fixed work list."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence


@dataclass(slots=True, frozen=True)
class TaskOutcome[T, R]:
    """Result of one work item: either ``value`` or ``error`` is set."""

    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def capture[T, R](item: T, work: Callable[[T], Awaitable[R]]) -> TaskOutcome[T, R]:
    try:
        return TaskOutcome(item=item, value=await work(item))
    except Exception as exc:  # noqa: BLE001
        return TaskOutcome(item=item, error=exc)


async def run_bounded[T, R](
    items: Sequence[T],
    work: Callable[[T], Awaitable[R]],
    *,
    concurrency: int,
) -> list[TaskOutcome[T, R]]:
    """Run ``work`` over ``items`` with at most ``concurrency`` in flight.

    Workers pull the next index from a shared counter until the list is
    exhausted. Failures are captured per item and never cancel other work.
    Outcomes are returned in input order once every worker has finished.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be positive")

    outcomes: list[TaskOutcome[T, R] | None] = [None] * len(items)
    next_index = 0

    async def worker() -> None:
        nonlocal next_index
        while next_index < len(items):
            index = next_index
            next_index += 1
            outcomes[index] = await capture(items[index], work)

    workers = min(concurrency, len(items))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return [outcome for outcome in outcomes if outcome is not None]
