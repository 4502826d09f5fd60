"""
Deals API Endpoints.

Endpoints used by the automation pipeline (create) and by operator clients
(accept, skip, pending listing).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from api.auth import require_api_token, require_resolution_token
from api.models import (
    AckResponse,
    ClaimResponse,
    CreateDealRequest,
    ErrorResponse,
    PendingDealResponse,
    SampleDealResponse,
    SkipRequest,
)
from services.deal_lifecycle_service import DealLifecycleService

router = APIRouter()


def get_deal_service(request: Request) -> DealLifecycleService:
    return request.app.state.deal_service


@router.post(
    "/deal",
    response_model=AckResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_api_token)],
    summary="Create Deal",
    description="Store a new pending deal and announce it to connected operators."
)
def create_deal(
    request: CreateDealRequest,
    service: DealLifecycleService = Depends(get_deal_service),
):
    """
    Called by the automation pipeline when a new eligible deal is detected.

    The contact is stored but never broadcast. Connected operators receive
    a `new-deal` event over `/ws`.

    **Example request:**
    ```json
    {
      "id": "d1",
      "channel": "Facebook Ads",
      "program": "Business creation",
      "contact": "0601020304"
    }
    ```
    """
    service.ingest(request.to_payload())
    return AckResponse(success=True, message="Alert sent")


@router.post(
    "/deal/{deal_id}/accept",
    response_model=ClaimResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_resolution_token)],
    summary="Accept Deal",
    description="Claim a pending deal and receive its contact."
)
def accept_deal(deal_id: str, service: DealLifecycleService = Depends(get_deal_service)):
    """
    Called when an operator decides to call the lead.

    Only the first caller succeeds; everyone else gets 409. The pipeline is
    notified in the background.
    """
    result = service.claim(deal_id)
    return ClaimResponse(success=True, contact=result.contact, reference_url=result.reference_url)


@router.post(
    "/deal/{deal_id}/skip",
    response_model=AckResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_resolution_token)],
    summary="Skip Deal",
    description="Decline a pending deal (operator choice or client-side timeout)."
)
def skip_deal(
    deal_id: str,
    body: Optional[SkipRequest] = None,
    service: DealLifecycleService = Depends(get_deal_service),
):
    service.release(deal_id, body.reason if body is not None else None)
    return AckResponse(success=True)


@router.get(
    "/deals/pending",
    response_model=List[PendingDealResponse],
    summary="List Pending Deals",
    description="Deals still awaiting a decision, oldest first. Contacts are never included."
)
def list_pending_deals(service: DealLifecycleService = Depends(get_deal_service)):
    return [
        PendingDealResponse(
            id=summary.deal_id,
            channel=summary.channel,
            source=summary.source,
            program=summary.program,
            reference_url=summary.reference_url,
            received_at=summary.received_at,
        )
        for summary in service.list_pending()
    ]


@router.get(
    "/test-deal",
    response_model=SampleDealResponse,
    summary="Send Sample Deal",
    description="Push a synthetic deal without the pipeline. Disabled unless ENABLE_TEST_DEAL is set."
)
def send_test_deal(http_request: Request, service: DealLifecycleService = Depends(get_deal_service)):
    if not http_request.app.state.settings.enable_test_deal:
        raise HTTPException(status_code=404, detail="Not Found")

    deal_id = service.ingest_sample()
    return SampleDealResponse(success=True, message="Sample deal sent", id=deal_id)
