"""
Deal lifecycle service.

Request-facing operations combining the deal store, the broadcast channel and
the notification dispatcher:
- ingest: validate, store as pending, announce (without contact)
- claim: pending -> accepted, notify the pipeline, hand back the contact
- release: pending -> skipped, bookkeeping only

The claim result is the only path through which a contact leaves the store.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from domain.deal import Deal, DealStatus, DealSummary, normalize_label
from domain.errors import DealValidationError
from domain.time import Clock, utc_now
from repositories.deal_repository import DealStore
from services.broadcast_service import BroadcastChannel, new_deal_event
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClaimResult:
    """Sensitive payload returned to the single successful claimant."""
    contact: str
    reference_url: str


@dataclass(frozen=True, slots=True)
class HealthStatus:
    uptime_seconds: int
    store_size: int


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class DealLifecycleService:
    """
    Orchestrates ingest, claim and release under the store's transition rules.

    Args:
        store: Canonical deal store
        broadcaster: Channel receiving one announcement per ingested deal
        dispatcher: Webhook sender triggered once per successful claim
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        store: DealStore,
        broadcaster: BroadcastChannel,
        dispatcher: NotificationDispatcher,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._broadcaster = broadcaster
        self._dispatcher = dispatcher
        self._clock = clock
        self._started = time.monotonic()

    def ingest(self, payload: Mapping[str, Any]) -> None:
        """
        Store a new pending deal and announce it to connected operators.

        Expected keys: id, contact (required); channel, source, program,
        reference_url (optional).

        Raises:
            DealValidationError: id or contact missing
            DuplicateDealError: id already stored
        """

        deal_id = _clean(payload.get("id"))
        contact = _clean(payload.get("contact"))
        if deal_id is None or contact is None:
            raise DealValidationError("id and contact are required", deal_id)

        deal = Deal(
            deal_id=deal_id,
            contact=contact,
            received_at=self._clock(),
            channel=normalize_label(payload.get("channel")),
            source=normalize_label(payload.get("source")),
            program=normalize_label(payload.get("program")),
            reference_url=_clean(payload.get("reference_url")) or "",
        )

        self._store.insert(deal)
        delivered = self._broadcaster.publish(new_deal_event(deal.announcement()))

        logger.info(
            "[DEAL] New deal received: %s - %s - %s (announced to %d client(s))",
            deal.deal_id,
            deal.program,
            deal.channel,
            delivered,
        )

    def ingest_sample(self) -> str:
        """Push a synthetic deal through the normal ingest path. Returns its id."""

        deal_id = f"test-{int(time.time() * 1000)}-{uuid4().hex[:6]}"
        self.ingest(
            {
                "id": deal_id,
                "channel": "Facebook Ads",
                "source": "Sample campaign",
                "program": "Business creation",
                "contact": "06 12 34 56 78",
                "reference_url": "https://crm.example.com/deal/test",
            }
        )
        logger.info("[TEST] Sample deal sent: %s", deal_id)
        return deal_id

    def claim(self, deal_id: str) -> ClaimResult:
        """
        Accept a pending deal on behalf of the caller.

        Raises:
            DealNotFoundError
            DealAlreadyResolvedError
        """

        deal = self._store.transition(
            deal_id,
            DealStatus.ACCEPTED,
            resolved_at=self._clock(),
        )
        logger.info("[ACCEPT] Deal accepted: %s at %s", deal.deal_id, deal.resolved_at.isoformat())

        self._dispatcher.dispatch(deal)

        return ClaimResult(contact=deal.contact, reference_url=deal.reference_url)

    def release(self, deal_id: str, reason: Optional[str] = None) -> None:
        """
        Skip a pending deal. No broadcast, no notification.

        Raises:
            DealNotFoundError
            DealAlreadyResolvedError
        """

        deal = self._store.transition(
            deal_id,
            DealStatus.SKIPPED,
            resolved_at=self._clock(),
            skip_reason=reason,
        )
        logger.info("[SKIP] Deal skipped: %s - reason: %s", deal.deal_id, deal.skip_reason)

    def list_pending(self) -> List[DealSummary]:
        return [deal.summary() for deal in self._store.list_pending()]

    def health(self) -> HealthStatus:
        return HealthStatus(
            uptime_seconds=int(time.monotonic() - self._started),
            store_size=len(self._store),
        )


__all__ = ["ClaimResult", "HealthStatus", "DealLifecycleService"]
