"""
Domain: Deal entity.

A Deal is a lead pushed by the automation pipeline that needs exactly one
operator decision.

Rules implemented here:
- deal_id is producer-supplied and immutable.
- received_at is a UTC timestamp set once at creation.
- status moves only pending -> accepted or pending -> skipped, never back.
- resolved_at exists iff status is not pending.
- skip_reason exists iff status is skipped.
- contact is never part of the announcement projection.

This module contains only pure domain entities/value objects: no I/O, no locks,
no frameworks. All timestamps must be passed explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .errors import DealAlreadyResolvedError
from .time import require_utc_timestamp, to_iso_utc

UNSPECIFIED = "unspecified"


class DealStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    """Known skip codes. Other non-blank reasons are kept verbatim."""

    SKIP = "skip"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


def normalize_label(value: Optional[str]) -> str:
    """Classification fields fall back to the sentinel when absent or blank."""
    if value is None:
        return UNSPECIFIED
    text = str(value).strip()
    return text or UNSPECIFIED


def normalize_skip_reason(reason: Optional[str]) -> str:
    if reason is None:
        return SkipReason.UNKNOWN.value
    text = str(reason).strip()
    return text or SkipReason.UNKNOWN.value


@dataclass(frozen=True, slots=True)
class DealAnnouncement:
    """
    Redacted projection broadcast to every connected operator.

    Carries no contact and no status.
    """

    deal_id: str
    channel: str
    source: str
    program: str
    reference_url: str
    received_at: datetime

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.deal_id,
            "channel": self.channel,
            "source": self.source,
            "program": self.program,
            "reference_url": self.reference_url,
            "received_at": to_iso_utc(self.received_at, name="received_at"),
        }


@dataclass(frozen=True, slots=True)
class DealSummary:
    """Everything about a deal except the contact, for operator listings."""

    deal_id: str
    channel: str
    source: str
    program: str
    reference_url: str
    received_at: datetime
    status: DealStatus
    resolved_at: Optional[datetime] = None
    skip_reason: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Deal:
    """
    Pure domain entity for a Deal.

    Immutability:
    - This entity is frozen; a transition returns a new instance and leaves
      the original untouched. The store swaps the canonical copy.
    """

    deal_id: str
    contact: str
    received_at: datetime
    channel: str = UNSPECIFIED
    source: str = UNSPECIFIED
    program: str = UNSPECIFIED
    reference_url: str = ""
    status: DealStatus = DealStatus.PENDING
    resolved_at: Optional[datetime] = None
    skip_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.deal_id:
            raise ValueError("deal_id is required")
        if not self.contact:
            raise ValueError("contact is required")
        require_utc_timestamp("received_at", self.received_at)

        if self.status is DealStatus.PENDING:
            if self.resolved_at is not None:
                raise ValueError("resolved_at must be empty while the deal is pending")
        else:
            if self.resolved_at is None:
                raise ValueError("resolved_at is required once the deal is resolved")
            require_utc_timestamp("resolved_at", self.resolved_at)

        if self.status is DealStatus.SKIPPED:
            if not self.skip_reason:
                raise ValueError("skip_reason is required for a skipped deal")
        elif self.skip_reason is not None:
            raise ValueError("skip_reason is only allowed for a skipped deal")

    @property
    def is_pending(self) -> bool:
        return self.status is DealStatus.PENDING

    def accepted(self, resolved_at: datetime) -> "Deal":
        """Return a new Deal marked as accepted."""

        if not self.is_pending:
            raise DealAlreadyResolvedError(self.deal_id)
        return self._resolve(DealStatus.ACCEPTED, resolved_at, None)

    def skipped(self, resolved_at: datetime, reason: Optional[str] = None) -> "Deal":
        """Return a new Deal marked as skipped with a normalized reason."""

        if not self.is_pending:
            raise DealAlreadyResolvedError(self.deal_id)
        return self._resolve(DealStatus.SKIPPED, resolved_at, normalize_skip_reason(reason))

    def _resolve(self, status: DealStatus, resolved_at: datetime, skip_reason: Optional[str]) -> "Deal":
        return Deal(
            deal_id=self.deal_id,
            contact=self.contact,
            received_at=self.received_at,
            channel=self.channel,
            source=self.source,
            program=self.program,
            reference_url=self.reference_url,
            status=status,
            resolved_at=resolved_at,
            skip_reason=skip_reason,
        )

    def announcement(self) -> DealAnnouncement:
        return DealAnnouncement(
            deal_id=self.deal_id,
            channel=self.channel,
            source=self.source,
            program=self.program,
            reference_url=self.reference_url,
            received_at=self.received_at,
        )

    def summary(self) -> DealSummary:
        return DealSummary(
            deal_id=self.deal_id,
            channel=self.channel,
            source=self.source,
            program=self.program,
            reference_url=self.reference_url,
            received_at=self.received_at,
            status=self.status,
            resolved_at=self.resolved_at,
            skip_reason=self.skip_reason,
        )
