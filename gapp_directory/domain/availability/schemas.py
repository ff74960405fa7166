"""Availability domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel

from ...models import AvailabilityResponse


class AvailabilityRespondRequest(BaseModel):
    token: str
    response: str  # checked after the token so token errors take precedence


class AvailabilityRespondResult(BaseModel):
    success: bool = True
    provider_name: str
    response: AvailabilityResponse
    message: str
    availability_streak: int


class TokenStatus(BaseModel):
    """Read-only view of a token for the landing page"""

    status: str  # valid, expired, used, not_found
    provider_name: Optional[str] = None
    previous_response: Optional[AvailabilityResponse] = None


class PingSummary(BaseModel):
    sent: int = 0
    failed: int = 0
    email_failed: int = 0
    skipped: int = 0
    stale_reset: int = 0
    total: int = 0


class FollowupSummary(BaseModel):
    warnings_sent: int = 0
    suspensions: int = 0
    failures: int = 0
    email_failures: int = 0
