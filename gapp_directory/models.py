import enum
from typing import Optional, Union

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base
from .shared.timeutils import utcnow


class TierLevel(enum.IntEnum):
    """Listing tier, ordered. Stored as an integer column."""

    UNCLAIMED = 0
    CLAIMED = 1
    VERIFIED = 2
    PREMIUM = 3

    @classmethod
    def parse(cls, value: Union[int, str, None]) -> "TierLevel":
        """Accept an int, an enum name or one of the legacy billing labels"""
        if value is None:
            return cls.UNCLAIMED
        if isinstance(value, int):
            return cls(value)
        label = str(value).strip().lower()
        if label.isdigit():
            return cls(int(label))
        legacy = {"free": cls.CLAIMED, "basic": cls.VERIFIED, "featured": cls.PREMIUM}
        if label in legacy:
            return legacy[label]
        try:
            return cls[label.upper()]
        except KeyError:
            raise ValueError(f"Unknown tier level: {value}") from None


class AvailabilityResponse(str, enum.Enum):
    AVAILABLE = "available"
    NOT_AVAILABLE = "not_available"


class CallbackStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    CLOSED = "closed"


class ListingRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class IssueType(str, enum.Enum):
    NO_ANSWER = "no_answer"
    NOT_TAKING_CASES = "not_taking_cases"
    WRONG_NUMBER = "wrong_number"
    OTHER = "other"


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)

    city = Column(String(120), nullable=True)
    state = Column(String(2), default="GA", nullable=False)
    address = Column(String(500), nullable=True)
    email = Column(String(255), index=True, nullable=True)
    phone = Column(String(50), nullable=True)
    intake_phone = Column(String(50), nullable=True)
    website = Column(String(500), nullable=True)

    counties_served = Column(JSON, default=list, nullable=False)  # ["Fulton", "DeKalb"]
    services_offered = Column(JSON, default=list, nullable=False)  # subset of RN, LPN, PCS
    languages = Column(JSON, default=list, nullable=False)
    available_hours = Column(String(255), nullable=True)  # free text, e.g. "Nights and weekends"
    bio = Column(Text, nullable=True)
    how_to_start = Column(Text, nullable=True)
    years_in_business = Column(Integer, nullable=True)
    response_expectation = Column(String(255), nullable=True)
    accepting_new_patients = Column(Boolean, default=False, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)
    tier_level = Column(Integer, default=int(TierLevel.UNCLAIMED), nullable=False)

    is_claimed = Column(Boolean, default=False, nullable=False)
    claimed_at = Column(DateTime, nullable=True)
    claimed_by_email = Column(String(255), nullable=True)
    claimer_name = Column(String(255), nullable=True)
    claimer_phone = Column(String(50), nullable=True)
    claim_token = Column(String(64), unique=True, index=True, nullable=True)

    is_available = Column(Boolean, default=False, nullable=False)  # only meaningful while verified
    availability_updated_at = Column(DateTime, nullable=True)
    availability_streak = Column(Integer, default=0, nullable=False)
    last_ping_sent_at = Column(DateTime, nullable=True)

    verification_suspended_at = Column(DateTime, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    unverified_at = Column(DateTime, nullable=True)
    unverified_reason = Column(String(255), nullable=True)
    featured_at = Column(DateTime, nullable=True)
    downgraded_at = Column(DateTime, nullable=True)
    downgraded_reason = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tokens = relationship("AvailabilityToken", back_populates="provider")

    @property
    def tier(self) -> TierLevel:
        return TierLevel.parse(self.tier_level)

    @property
    def contact_email(self) -> Optional[str]:
        """Address that receives workflow mail: the claimer first, then the listing email"""
        return self.claimed_by_email or self.email


class AvailabilityToken(Base):
    __tablename__ = "availability_tokens"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), index=True, nullable=False)
    token = Column(String(64), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    response = Column(String(20), nullable=True)  # available, not_available
    warning_sent_at = Column(DateTime, nullable=True)
    suspension_processed_at = Column(DateTime, nullable=True)

    provider = relationship("Provider", back_populates="tokens")


class CallbackRequest(Base):
    __tablename__ = "callback_requests"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), index=True, nullable=False)
    parent_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    zip_code = Column(String(10), nullable=False)
    county = Column(String(120), nullable=True)
    service_needed = Column(String(20), nullable=False)  # RN, LPN, PCS, not_sure
    urgency = Column(String(20), nullable=False)  # asap, this_month, researching
    preferred_callback_time = Column(String(20), nullable=True)  # morning, afternoon, evening
    special_needs = Column(Text, nullable=True)
    status = Column(String(20), default=CallbackStatus.NEW.value, nullable=False)
    contacted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    provider = relationship("Provider")


class ListingRequest(Base):
    __tablename__ = "listing_requests"

    id = Column(Integer, primary_key=True, index=True)
    contact_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), index=True, nullable=False)
    contact_phone = Column(String(50), nullable=True)
    business_name = Column(String(255), nullable=False)
    city = Column(String(120), nullable=False)
    website = Column(String(500), nullable=True)
    services_offered = Column(JSON, default=list, nullable=False)
    counties_served = Column(JSON, default=list, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), default=ListingRequestStatus.PENDING.value, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)
    reviewed_by = Column(String(255), nullable=True)
    review_notes = Column(Text, nullable=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ProviderIssue(Base):
    __tablename__ = "provider_issues"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), index=True, nullable=False)
    issue_type = Column(String(30), nullable=False)
    notes = Column(Text, nullable=True)
    reported_by = Column(String(50), default="case_manager", nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, resolved
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ProviderInquiry(Base):
    __tablename__ = "provider_inquiries"

    id = Column(Integer, primary_key=True, index=True)
    agency_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    county = Column(String(120), nullable=False)
    services = Column(JSON, default=list, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class PendingUpgrade(Base):
    """Billing events whose customer email did not match any provider"""

    __tablename__ = "pending_upgrades"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    product_id = Column(String(255), nullable=True)
    product_name = Column(String(255), nullable=True)
    event_type = Column(String(100), nullable=False)
    raw_data = Column(JSON, nullable=True)
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
