"""Test data factories for GAPP directory tests.

Use these instead of constructing model objects by hand so that every test
starts from the same realistic defaults.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from gapp_directory.models import (
    AvailabilityToken,
    CallbackRequest,
    ListingRequest,
    Provider,
    ProviderIssue,
    TierLevel,
)
from gapp_directory.shared.validators import slugify

_counter = {"n": 0}


def _next() -> int:
    _counter["n"] += 1
    return _counter["n"]


# -----------------------------------------------------------------------------
# Provider Factory
# -----------------------------------------------------------------------------


def create_provider(
    session: Session,
    name: Optional[str] = None,
    email: Optional[str] = "intake@example.com",
    is_verified: bool = False,
    tier_level: TierLevel = TierLevel.UNCLAIMED,
    **kwargs: Any,
) -> Provider:
    """Create a Provider record for testing."""
    n = _next()
    name = name or f"Peach State Nursing {n}"
    defaults = {
        "slug": f"{slugify(name)}-{n}",
        "city": "Atlanta",
        "phone": "+14045550100",
        "counties_served": ["Fulton", "DeKalb"],
        "services_offered": ["RN", "LPN"],
        "languages": ["English"],
        "available_hours": "Weekdays 8am-6pm",
    }
    defaults.update(kwargs)
    provider = Provider(
        name=name,
        email=email,
        is_verified=is_verified,
        tier_level=int(tier_level),
        **defaults,
    )
    session.add(provider)
    session.commit()
    session.refresh(provider)
    return provider


def create_verified_provider(session: Session, **kwargs: Any) -> Provider:
    kwargs.setdefault("tier_level", TierLevel.VERIFIED)
    kwargs.setdefault("is_claimed", True)
    return create_provider(session, is_verified=True, **kwargs)


# -----------------------------------------------------------------------------
# Availability Token Factory
# -----------------------------------------------------------------------------


def create_token(
    session: Session,
    provider: Provider,
    created_at: datetime,
    token: Optional[str] = None,
    **kwargs: Any,
) -> AvailabilityToken:
    record = AvailabilityToken(
        provider_id=provider.id,
        token=token or f"{_next():064x}",
        created_at=created_at,
        expires_at=kwargs.pop("expires_at", created_at + timedelta(days=7)),
        **kwargs,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


# -----------------------------------------------------------------------------
# Lead Factories
# -----------------------------------------------------------------------------


def create_callback(session: Session, provider: Provider, **kwargs: Any) -> CallbackRequest:
    defaults = {
        "parent_name": "Jordan Smith",
        "phone": "+14045550123",
        "zip_code": "30301",
        "service_needed": "RN",
        "urgency": "asap",
        "status": "new",
    }
    defaults.update(kwargs)
    lead = CallbackRequest(provider_id=provider.id, **defaults)
    session.add(lead)
    session.commit()
    session.refresh(lead)
    return lead


def create_listing_request(session: Session, **kwargs: Any) -> ListingRequest:
    defaults = {
        "contact_name": "Avery Jones",
        "contact_email": f"owner{_next()}@example.com",
        "business_name": "Magnolia Home Health",
        "city": "Macon",
        "services_offered": ["PCS"],
        "counties_served": ["Bibb"],
        "status": "pending",
    }
    defaults.update(kwargs)
    request = ListingRequest(**defaults)
    session.add(request)
    session.commit()
    session.refresh(request)
    return request


def create_issue(session: Session, provider: Provider, **kwargs: Any) -> ProviderIssue:
    defaults = {"issue_type": "no_answer", "reported_by": "case_manager", "status": "pending"}
    defaults.update(kwargs)
    issue = ProviderIssue(provider_id=provider.id, **defaults)
    session.add(issue)
    session.commit()
    session.refresh(issue)
    return issue
