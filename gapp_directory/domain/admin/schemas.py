"""Admin domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import validate_email, validate_services, validate_us_phone
from ..providers.schemas import ProviderResponse


class AdminAuthRequest(BaseModel):
    password: Optional[str] = None


class AdminProviderResponse(ProviderResponse):
    """Provider row with the internal workflow fields"""

    is_active: bool = True
    claimed_at: Optional[datetime] = None
    claimed_by_email: Optional[str] = None
    claimer_name: Optional[str] = None
    claimer_phone: Optional[str] = None
    claim_token: Optional[str] = None
    availability_streak: int = 0
    last_ping_sent_at: Optional[datetime] = None
    verification_suspended_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    unverified_at: Optional[datetime] = None
    unverified_reason: Optional[str] = None
    featured_at: Optional[datetime] = None
    downgraded_at: Optional[datetime] = None
    downgraded_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberStats(BaseModel):
    total: int
    verified: int
    featured: int
    accepting: int
    claimed: int
    suspended: int


class MembersResponse(BaseModel):
    data: list[AdminProviderResponse]
    stats: MemberStats


class ProviderAction(BaseModel):
    providerId: int


class UnverifyRequest(ProviderAction):
    reason: Optional[str] = None


class FeaturedRequest(ProviderAction):
    featured: bool


class DowngradeRequest(ProviderAction):
    tierLevel: int
    reason: Optional[str] = None

    @field_validator("tierLevel")
    @classmethod
    def check_tier(cls, v):
        if v < 0 or v > 3:
            raise ValueError("Tier level must be between 0 and 3")
        return v


class MarkClaimedRequest(ProviderAction):
    email: Optional[str] = None
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else None


class ProviderUpdate(BaseModel):
    """Partial profile edit; only fields that are set are written"""

    providerId: int
    name: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    intake_phone: Optional[str] = None
    website: Optional[str] = None
    counties_served: Optional[list[str]] = None
    services_offered: Optional[list[str]] = None
    languages: Optional[list[str]] = None
    available_hours: Optional[str] = None
    bio: Optional[str] = None
    how_to_start: Optional[str] = None
    years_in_business: Optional[int] = None
    response_expectation: Optional[str] = None
    accepting_new_patients: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else v

    @field_validator("phone", "intake_phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("services_offered")
    @classmethod
    def check_services(cls, v):
        if v is None:
            return v
        return validate_services(v)


class LeadStatusUpdate(BaseModel):
    status: Literal["new", "contacted", "converted", "closed"]


class ListingReviewRequest(BaseModel):
    reviewedBy: Optional[str] = None
    notes: Optional[str] = None


class IssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider_id: int
    issue_type: str
    notes: Optional[str] = None
    reported_by: str
    status: str
    resolved_at: Optional[datetime] = None
    created_at: datetime
