"""
Domain: Deal error taxonomy.

Callers must be able to tell apart:
- malformed input (DealValidationError)
- an id that was never stored (DealNotFoundError)
- a deal already claimed or skipped by someone else (DealAlreadyResolvedError)

DispatchFailure never leaves the notification dispatcher.
"""

from __future__ import annotations

from typing import Optional


class DealError(Exception):
    """Base class for deal lifecycle failures."""

    def __init__(self, message: str, deal_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.deal_id = deal_id


class DealValidationError(DealError):
    """Raised when an inbound deal payload is incomplete."""


class DuplicateDealError(DealError):
    """Raised when a deal id is already present in the store."""

    def __init__(self, deal_id: str) -> None:
        super().__init__(f"Deal already exists: {deal_id}", deal_id)


class DealNotFoundError(DealError):
    """Raised when no live deal has the requested id."""

    def __init__(self, deal_id: str) -> None:
        super().__init__(f"Deal not found: {deal_id}", deal_id)


class DealAlreadyResolvedError(DealError):
    """Raised when a deal has already left the pending status."""

    def __init__(self, deal_id: str) -> None:
        super().__init__(f"Deal already processed: {deal_id}", deal_id)


class DispatchFailure(DealError):
    """Raised inside the dispatcher when the webhook call does not succeed."""
    pass


__all__ = [
    "DealError",
    "DealValidationError",
    "DuplicateDealError",
    "DealNotFoundError",
    "DealAlreadyResolvedError",
    "DispatchFailure",
]
