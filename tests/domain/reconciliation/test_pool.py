from __future__ import annotations

import asyncio

import pytest

from cardindex.domain.reconciliation import run_bounded


def test_run_bounded_preserves_input_order_and_captures_errors() -> None:
    async def work(item: int) -> int:
        await asyncio.sleep(0.001 * (5 - item))
        if item == 3:
            raise RuntimeError("boom")
        return item * 10

    outcomes = asyncio.run(run_bounded([1, 2, 3, 4], work, concurrency=2))

    assert [outcome.item for outcome in outcomes] == [1, 2, 3, 4]
    assert [outcome.value for outcome in outcomes] == [10, 20, None, 40]
    assert not outcomes[2].ok
    assert isinstance(outcomes[2].error, RuntimeError)


def test_run_bounded_never_exceeds_concurrency() -> None:
    in_flight = 0
    peak = 0

    async def work(_item: int) -> None:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.001)
        in_flight -= 1

    outcomes = asyncio.run(run_bounded(list(range(12)), work, concurrency=3))

    assert len(outcomes) == 12
    assert peak == 3


def test_run_bounded_handles_empty_input_and_rejects_zero_workers() -> None:
    async def work(item: int) -> int:
        return item

    assert asyncio.run(run_bounded([], work, concurrency=4)) == []
    with pytest.raises(ValueError, match="concurrency"):
        asyncio.run(run_bounded([1], work, concurrency=0))
