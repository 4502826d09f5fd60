"""
Deal repository (in-memory state).

This module owns the canonical copy of every live Deal. State is volatile and
scoped to the process lifetime; nothing is persisted.

Guarantees:
- insert never overwrites an existing id.
- transition is a single check-and-set under the store lock: of any number
  of concurrent transitions for the same id, exactly one observes pending.
- sweep_older_than takes the lock once per removal, never for the whole pass.
- Readers only ever receive frozen snapshots.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, List, Optional

from domain.deal import Deal, DealStatus
from domain.errors import DealAlreadyResolvedError, DealNotFoundError, DuplicateDealError
from domain.time import require_utc_timestamp


class DealStore:
    """Authoritative key-value holder of Deals, keyed by deal_id."""

    def __init__(self) -> None:
        self._deals: Dict[str, Deal] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._deals)

    def insert(self, deal: Deal) -> None:
        """
        Store a new pending deal.

        Raises:
            ValueError: the deal is not pending
            DuplicateDealError: the id is already present
        """

        if not deal.is_pending:
            raise ValueError("Only pending deals can be inserted")

        with self._lock:
            if deal.deal_id in self._deals:
                raise DuplicateDealError(deal.deal_id)
            self._deals[deal.deal_id] = deal

    def get(self, deal_id: str) -> Deal:
        with self._lock:
            deal = self._deals.get(deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)
        return deal

    def transition(
        self,
        deal_id: str,
        status: DealStatus,
        *,
        resolved_at: datetime,
        skip_reason: Optional[str] = None,
    ) -> Deal:
        """
        Atomically move a pending deal to a terminal status.

        Args:
            deal_id: Deal identifier
            status: DealStatus.ACCEPTED or DealStatus.SKIPPED
            resolved_at: UTC timestamp of the decision
            skip_reason: Reason code, only meaningful for SKIPPED

        Returns:
            The resolved Deal snapshot

        Raises:
            DealNotFoundError: no live deal has this id
            DealAlreadyResolvedError: the deal already left pending
        """

        require_utc_timestamp("resolved_at", resolved_at)
        if status is DealStatus.PENDING:
            raise ValueError("transition target must be a terminal status")

        with self._lock:
            current = self._deals.get(deal_id)
            if current is None:
                raise DealNotFoundError(deal_id)
            if not current.is_pending:
                raise DealAlreadyResolvedError(deal_id)

            if status is DealStatus.ACCEPTED:
                updated = current.accepted(resolved_at)
            else:
                updated = current.skipped(resolved_at, skip_reason)

            self._deals[deal_id] = updated
            return updated

    def sweep_older_than(self, cutoff: datetime) -> int:
        """
        Remove every deal received strictly before cutoff, whatever its status.

        Returns:
            Number of deals removed
        """

        require_utc_timestamp("cutoff", cutoff)

        with self._lock:
            candidates = [
                deal_id for deal_id, deal in self._deals.items() if deal.received_at < cutoff
            ]

        removed = 0
        for deal_id in candidates:
            with self._lock:
                deal = self._deals.get(deal_id)
                # received_at is immutable, but the id may have been swept already
                if deal is not None and deal.received_at < cutoff:
                    del self._deals[deal_id]
                    removed += 1
        return removed

    def list_pending(self) -> List[Deal]:
        """Snapshot of pending deals, oldest first."""

        with self._lock:
            pending = [deal for deal in self._deals.values() if deal.is_pending]
        return sorted(pending, key=lambda d: d.received_at)


__all__ = ["DealStore"]
