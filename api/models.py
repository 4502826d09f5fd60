"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# ============================================================================
# Deal Models
# ============================================================================

class CreateDealRequest(BaseModel):
    """
    Deal pushed by the automation pipeline.

    Presence of id and contact is checked by the service, so every field is
    optional here. Legacy producer field names are accepted as aliases.
    """
    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "d1",
                "channel": "Facebook Ads",
                "source": "Spring campaign",
                "program": "Business creation",
                "contact": "0601020304",
                "reference_url": "https://crm.example.com/deal/d1"
            }
        },
    )

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "dealId"))
    channel: Optional[str] = Field(default=None, validation_alias=AliasChoices("channel", "canal"))
    source: Optional[str] = None
    program: Optional[str] = Field(default=None, validation_alias=AliasChoices("program", "formation"))
    contact: Optional[str] = Field(default=None, validation_alias=AliasChoices("contact", "telephone"))
    reference_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("reference_url", "referenceUrl", "hubspotUrl"),
    )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "channel": self.channel,
            "source": self.source,
            "program": self.program,
            "contact": self.contact,
            "reference_url": self.reference_url,
        }


class AckResponse(BaseModel):
    """Plain acknowledgment."""
    success: bool = True
    message: Optional[str] = None


class SampleDealResponse(AckResponse):
    id: str


class ClaimResponse(BaseModel):
    """Returned only to the operator who accepted the deal."""
    success: bool = True
    contact: str
    reference_url: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "contact": "0601020304",
                "reference_url": "https://crm.example.com/deal/d1"
            }
        }
    )


class SkipRequest(BaseModel):
    """Optional body of a skip call."""
    reason: Optional[str] = Field(
        default=None,
        description="skip, timeout, or any other code; defaults to unknown"
    )


class PendingDealResponse(BaseModel):
    """Pending deal as listed to a reconnecting operator (no contact)."""
    id: str
    channel: str
    source: str
    program: str
    reference_url: str
    received_at: datetime


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime: int
    deals_in_memory: int


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Deal already processed",
                "detail": "Deal already processed: d1",
                "status_code": 409
            }
        }
    )
