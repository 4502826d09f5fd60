"""
Notification dispatcher for accepted deals.

Informs the automation pipeline that a deal was claimed by POSTing
{"id", "resolved_at"} to a single configured webhook.

Contract:
- At most one attempt per claim, no retries.
- The claiming caller never waits on the outcome.
- Failures (network errors, non-2xx responses) are logged and dropped; they
  never roll back the claim.
- No configured URL means the dispatch is a logged no-op.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

import httpx

from domain.deal import Deal
from domain.errors import DispatchFailure
from domain.time import to_iso_utc

logger = logging.getLogger(__name__)


def build_accept_payload(deal: Deal) -> Dict[str, Any]:
    """Webhook body for an accepted deal."""

    if deal.resolved_at is None:
        raise ValueError("Cannot notify for an unresolved deal")
    return {
        "id": deal.deal_id,
        "resolved_at": to_iso_utc(deal.resolved_at, name="resolved_at"),
    }


class NotificationDispatcher:
    """
    Fire-and-forget webhook sender backed by a small thread pool.

    Args:
        webhook_url: Target endpoint; empty or None disables dispatching
        timeout: Per-request timeout in seconds
        max_workers: Size of the sender pool
        transport: Optional httpx transport (tests inject httpx.MockTransport)
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        *,
        timeout: float = 10.0,
        max_workers: int = 4,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._webhook_url = webhook_url or None
        self._timeout = timeout
        self._transport = transport
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="deal-webhook",
        )

    @property
    def enabled(self) -> bool:
        return self._webhook_url is not None

    def dispatch(self, deal: Deal) -> Optional[Future]:
        """
        Schedule the accept notification and return immediately.

        Returns:
            Future resolving to True/False once the attempt finished,
            or None when no webhook is configured
        """

        if self._webhook_url is None:
            logger.info(
                "[WEBHOOK] No webhook configured, skipping notification for deal %s",
                deal.deal_id,
            )
            return None

        payload = build_accept_payload(deal)
        return self._executor.submit(self._send, payload)

    def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            response = client.post(self._webhook_url, json=payload)
        if not response.is_success:
            raise DispatchFailure(
                f"Webhook returned HTTP {response.status_code}",
                payload["id"],
            )
        return response

    def _send(self, payload: Dict[str, Any]) -> bool:
        deal_id = payload["id"]
        try:
            response = self._post(payload)
        except DispatchFailure as exc:
            logger.error(
                "[WEBHOOK] Notification rejected for deal %s: %s",
                deal_id,
                exc.message,
                extra={"deal_id": deal_id},
            )
            return False
        except httpx.HTTPError as exc:
            logger.error(
                "[WEBHOOK] Notification failed for deal %s: %s",
                deal_id,
                exc,
                extra={"deal_id": deal_id, "error_type": type(exc).__name__},
            )
            return False

        logger.info(
            "[WEBHOOK] Notification sent for deal %s (HTTP %s)",
            deal_id,
            response.status_code,
        )
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["NotificationDispatcher", "build_accept_payload"]
