"""Lead router - Public callback and listing request forms"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...config import Settings
from ...database import get_db
from ...dependencies import get_email_sender, get_settings
from ...email_service import EmailSender
from ...rate_limiter import create_rate_limiter
from .schemas import CallbackCreate, CallbackResponse, ListingRequestCreate, ListingRequestSubmitted
from .service import LeadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Leads"])

callback_rate_limit = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="callback")
listing_rate_limit = create_rate_limiter(limit=3, window_seconds=3600, key_prefix="listing_request")


def get_lead_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
) -> LeadService:
    """Dependency injection for LeadService"""
    return LeadService(db, settings, email_sender)


@router.post("/callback", response_model=CallbackResponse)
async def request_callback(
    data: CallbackCreate,
    service: LeadService = Depends(get_lead_service),
    _: None = Depends(callback_rate_limit),
):
    lead = await service.create_callback(data)
    return CallbackResponse(id=lead.id, message="Callback request sent. The provider will reach out soon.")


@router.post("/listing-request", response_model=ListingRequestSubmitted)
async def request_listing(
    data: ListingRequestCreate,
    service: LeadService = Depends(get_lead_service),
    _: None = Depends(listing_rate_limit),
):
    request = await service.create_listing_request(data)
    return ListingRequestSubmitted(id=request.id, message="Listing request received")
