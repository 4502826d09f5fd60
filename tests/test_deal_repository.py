"""
Tests for `repositories/deal_repository.py`.

Covers rules:
- insert rejects duplicates and keeps the first deal.
- transition is an atomic check-and-set: concurrent attempts on one id
  produce exactly one winner.
- get / transition on an unknown id raise DealNotFoundError.
- sweep_older_than removes by received_at regardless of status.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from domain.deal import Deal, DealStatus
from domain.errors import DealAlreadyResolvedError, DealNotFoundError, DuplicateDealError

BASE = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _deal(deal_id: str, contact: str = "0601020304", minutes: int = 0) -> Deal:
    return Deal(deal_id=deal_id, contact=contact, received_at=BASE + timedelta(minutes=minutes))


def test_insert_then_get_returns_snapshot(store) -> None:
    store.insert(_deal("d1"))

    deal = store.get("d1")

    assert deal.deal_id == "d1"
    assert deal.status is DealStatus.PENDING
    assert len(store) == 1


def test_insert_duplicate_is_rejected_and_first_deal_kept(store) -> None:
    store.insert(_deal("d1", contact="first"))

    with pytest.raises(DuplicateDealError):
        store.insert(_deal("d1", contact="second"))

    assert store.get("d1").contact == "first"
    assert len(store) == 1


def test_insert_rejects_resolved_deal(store) -> None:
    accepted = _deal("d1").accepted(BASE)

    with pytest.raises(ValueError):
        store.insert(accepted)


def test_get_unknown_raises_not_found(store) -> None:
    with pytest.raises(DealNotFoundError):
        store.get("missing")


def test_transition_unknown_raises_not_found(store) -> None:
    with pytest.raises(DealNotFoundError):
        store.transition("missing", DealStatus.ACCEPTED, resolved_at=BASE)


def test_transition_to_accepted(store) -> None:
    store.insert(_deal("d1"))
    resolved_at = BASE + timedelta(seconds=5)

    updated = store.transition("d1", DealStatus.ACCEPTED, resolved_at=resolved_at)

    assert updated.status is DealStatus.ACCEPTED
    assert updated.resolved_at == resolved_at
    assert store.get("d1") == updated


def test_transition_to_skipped_records_reason(store) -> None:
    store.insert(_deal("d1"))

    updated = store.transition("d1", DealStatus.SKIPPED, resolved_at=BASE, skip_reason="timeout")

    assert updated.status is DealStatus.SKIPPED
    assert updated.skip_reason == "timeout"


def test_second_transition_raises_already_resolved(store) -> None:
    store.insert(_deal("d1"))
    store.transition("d1", DealStatus.SKIPPED, resolved_at=BASE, skip_reason="skip")

    with pytest.raises(DealAlreadyResolvedError):
        store.transition("d1", DealStatus.ACCEPTED, resolved_at=BASE)

    assert store.get("d1").status is DealStatus.SKIPPED


def test_transition_to_pending_is_rejected(store) -> None:
    store.insert(_deal("d1"))

    with pytest.raises(ValueError):
        store.transition("d1", DealStatus.PENDING, resolved_at=BASE)


def test_concurrent_transitions_have_exactly_one_winner(store) -> None:
    """Many threads race on the same id; only one sees pending."""

    store.insert(_deal("race"))
    attempts = 32
    barrier = threading.Barrier(attempts)

    def attempt(index: int) -> str:
        barrier.wait()
        status = DealStatus.ACCEPTED if index % 2 == 0 else DealStatus.SKIPPED
        try:
            store.transition("race", status, resolved_at=BASE, skip_reason="skip")
        except DealAlreadyResolvedError:
            return "conflict"
        return "won"

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(attempt, range(attempts)))

    assert outcomes.count("won") == 1
    assert outcomes.count("conflict") == attempts - 1
    assert store.get("race").status is not DealStatus.PENDING


def test_sweep_with_cutoff_after_all_removes_everything(store) -> None:
    store.insert(_deal("a", minutes=0))
    store.insert(_deal("b", minutes=10))
    store.transition("a", DealStatus.ACCEPTED, resolved_at=BASE)

    removed = store.sweep_older_than(BASE + timedelta(minutes=11))

    assert removed == 2
    assert len(store) == 0


def test_sweep_with_cutoff_before_all_removes_nothing(store) -> None:
    store.insert(_deal("a", minutes=0))
    store.insert(_deal("b", minutes=10))

    removed = store.sweep_older_than(BASE - timedelta(seconds=1))

    assert removed == 0
    assert len(store) == 2


def test_sweep_keeps_deals_received_at_cutoff(store) -> None:
    store.insert(_deal("old", minutes=0))
    store.insert(_deal("edge", minutes=30))

    removed = store.sweep_older_than(BASE + timedelta(minutes=30))

    assert removed == 1
    with pytest.raises(DealNotFoundError):
        store.get("old")
    assert store.get("edge").deal_id == "edge"


def test_list_pending_is_oldest_first_and_skips_resolved(store) -> None:
    store.insert(_deal("late", minutes=5))
    store.insert(_deal("early", minutes=1))
    store.insert(_deal("done", minutes=0))
    store.transition("done", DealStatus.SKIPPED, resolved_at=BASE, skip_reason="skip")

    assert [deal.deal_id for deal in store.list_pending()] == ["early", "late"]
