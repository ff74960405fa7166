"""Lead domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import validate_email, validate_services, validate_us_phone, validate_zip_code


class CallbackCreate(BaseModel):
    """Family callback request addressed to one provider"""

    parentName: str
    phone: str
    email: Optional[str] = None
    zipCode: str
    county: Optional[str] = None
    serviceNeeded: Literal["RN", "LPN", "PCS", "not_sure"]
    urgency: Literal["asap", "this_month", "researching"]
    preferredCallbackTime: Optional[Literal["morning", "afternoon", "evening"]] = None
    specialNeeds: Optional[str] = None
    providerId: int

    @field_validator("parentName")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Parent name is required")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_us_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v) if v else None

    @field_validator("zipCode")
    @classmethod
    def check_zip(cls, v):
        return validate_zip_code(v)


class CallbackResponse(BaseModel):
    success: bool = True
    id: int
    message: str


class ListingRequestCreate(BaseModel):
    contactName: str
    contactEmail: str
    contactPhone: Optional[str] = None
    businessName: str
    city: str
    website: Optional[str] = None
    servicesOffered: list[str] = []
    countiesServed: list[str] = []
    notes: Optional[str] = None

    @field_validator("contactName", "businessName", "city")
    @classmethod
    def check_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @field_validator("contactEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("contactPhone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_us_phone(v)
        return v

    @field_validator("servicesOffered")
    @classmethod
    def check_services(cls, v):
        return validate_services(v)


class ListingRequestSubmitted(BaseModel):
    success: bool = True
    id: int
    message: str


class CallbackLeadResponse(BaseModel):
    """Admin view of a callback lead"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    provider_id: int
    parent_name: str
    phone: str
    email: Optional[str] = None
    zip_code: str
    county: Optional[str] = None
    service_needed: str
    urgency: str
    preferred_callback_time: Optional[str] = None
    special_needs: Optional[str] = None
    status: str
    created_at: datetime
    contacted_at: Optional[datetime] = None


class ListingRequestResponse(BaseModel):
    """Admin view of a listing request"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    contact_name: str
    contact_email: str
    contact_phone: Optional[str] = None
    business_name: str
    city: str
    website: Optional[str] = None
    services_offered: list[str] = []
    counties_served: list[str] = []
    notes: Optional[str] = None
    status: str
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    provider_id: Optional[int] = None
    created_at: datetime
