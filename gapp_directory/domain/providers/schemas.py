"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...models import IssueType
from ...shared.validators import validate_email, validate_services, validate_us_phone


class ProviderResponse(BaseModel):
    """Public provider profile"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    intake_phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    counties_served: list[str] = []
    services_offered: list[str] = []
    languages: list[str] = []
    available_hours: Optional[str] = None
    bio: Optional[str] = None
    how_to_start: Optional[str] = None
    years_in_business: Optional[int] = None
    response_expectation: Optional[str] = None
    accepting_new_patients: bool = False
    is_verified: bool = False
    is_featured: bool = False
    is_claimed: bool = False
    tier_level: int = 0
    is_available: bool = False
    availability_updated_at: Optional[datetime] = None


class ProviderSummary(BaseModel):
    """Minimal listing used by the claim page"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    city: Optional[str] = None
    phone: Optional[str] = None
    services_offered: list[str] = []
    is_claimed: bool = False
    is_verified: bool = False


class PageMeta(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class ProviderListResponse(BaseModel):
    data: list[ProviderResponse]
    meta: PageMeta


class SearchResponse(BaseModel):
    results: list[ProviderSummary]


class CaseManagerResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    city: Optional[str] = None
    phone: Optional[str] = None
    intake_phone: Optional[str] = None
    website: Optional[str] = None
    counties_served: list[str] = []
    services_offered: list[str] = []
    languages: list[str] = []
    available_hours: Optional[str] = None
    response_expectation: Optional[str] = None
    is_featured: bool = False
    availability_updated_at: Optional[datetime] = None
    availability_streak: int = 0


class CaseManagerSearchResponse(BaseModel):
    providers: list[CaseManagerResult]
    count: int


class ClaimRequest(BaseModel):
    providerId: int
    email: str
    name: str
    phone: Optional[str] = None
    website: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v


class ClaimResponse(BaseModel):
    success: bool = True
    slug: str
    message: str


class ProviderInquiryCreate(BaseModel):
    """Self-registration from an agency not yet in the directory"""

    agencyName: str
    contactName: str
    email: str
    phone: str
    county: str
    services: list[str] = []
    message: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_us_phone(v)

    @field_validator("services")
    @classmethod
    def check_services(cls, v):
        return validate_services(v)


class IssueReportCreate(BaseModel):
    providerId: int
    issueType: IssueType
    notes: Optional[str] = None
    reportedBy: str = "case_manager"


class IssueReportResponse(BaseModel):
    success: bool = True
    issue_id: int
    unresolved_count: int
