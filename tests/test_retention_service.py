"""
Tests for `services/retention_service.py`.

Covers:
- deals older than the horizon are evicted whatever their status
- younger deals survive
- the background loop starts, sweeps on its interval and stops cleanly
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from domain.deal import DealStatus
from services.retention_service import RetentionSweeper


def test_sweep_once_evicts_only_stale_deals(service, store, clock) -> None:
    service.ingest({"id": "old-pending", "contact": "1"})
    service.ingest({"id": "old-accepted", "contact": "2"})
    service.claim("old-accepted")
    clock.advance(minutes=40)
    service.ingest({"id": "fresh", "contact": "3"})
    clock.advance(minutes=30)

    sweeper = RetentionSweeper(store, horizon=timedelta(hours=1), clock=clock)
    removed = sweeper.sweep_once()

    assert removed == 2
    assert len(store) == 1
    assert store.get("fresh").status is DealStatus.PENDING


def test_sweep_once_with_nothing_stale(service, store, clock) -> None:
    service.ingest({"id": "d1", "contact": "1"})

    sweeper = RetentionSweeper(store, clock=clock)

    assert sweeper.sweep_once() == 0
    assert len(store) == 1


@pytest.mark.parametrize("horizon, interval", [(timedelta(0), timedelta(hours=1)), (timedelta(hours=1), timedelta(0))])
def test_sweeper_rejects_non_positive_periods(store, horizon, interval) -> None:
    with pytest.raises(ValueError):
        RetentionSweeper(store, horizon=horizon, interval=interval)


def test_background_loop_sweeps_and_stops(service, store, clock) -> None:
    service.ingest({"id": "d1", "contact": "1"})
    clock.advance(hours=2)
    sweeper = RetentionSweeper(
        store,
        horizon=timedelta(hours=1),
        interval=timedelta(milliseconds=10),
        clock=clock,
    )

    async def run() -> None:
        sweeper.start()
        assert sweeper.is_running
        for _ in range(100):
            if len(store) == 0:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

    asyncio.run(run())

    assert len(store) == 0
    assert sweeper.is_running is False
