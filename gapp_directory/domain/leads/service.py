"""Lead service - Family callback requests and new listing requests"""

import logging
from datetime import datetime
from typing import Callable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings
from ...email_service import EmailSender, send_callback_lead, send_listing_request_emails
from ...models import CallbackRequest, CallbackStatus, ListingRequest, ListingRequestStatus, Provider
from ...shared.timeutils import utcnow
from ...utils.sanitization import clean_text
from .repository import LeadRepository
from .schemas import CallbackCreate, ListingRequestCreate

logger = logging.getLogger(__name__)


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate a callback lead status change.

    Lead statuses: new → contacted → converted/closed
    A lead can also be closed straight from new.
    """
    valid_transitions = {
        CallbackStatus.NEW.value: [CallbackStatus.CONTACTED.value, CallbackStatus.CLOSED.value],
        CallbackStatus.CONTACTED.value: [CallbackStatus.CONVERTED.value, CallbackStatus.CLOSED.value],
        CallbackStatus.CONVERTED.value: [],
        CallbackStatus.CLOSED.value: [],
    }

    if current_status == new_status:
        return True
    return new_status in valid_transitions.get(current_status, [])


class LeadService:
    """Service layer for lead business logic"""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        email_sender: EmailSender,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.settings = settings
        self.email_sender = email_sender
        self.clock = clock
        self.repo = LeadRepository()

    async def create_callback(self, data: CallbackCreate) -> CallbackRequest:
        provider = self.db.query(Provider).filter(Provider.id == data.providerId).first()
        if not provider or not provider.is_active:
            raise HTTPException(status_code=404, detail="Provider not found")

        try:
            lead = self.repo.create_callback(
                self.db,
                provider_id=provider.id,
                parent_name=data.parentName,
                phone=data.phone,
                email=data.email,
                zip_code=data.zipCode,
                county=clean_text(data.county, 120),
                service_needed=data.serviceNeeded,
                urgency=data.urgency,
                preferred_callback_time=data.preferredCallbackTime,
                special_needs=clean_text(data.specialNeeds),
                status=CallbackStatus.NEW.value,
                created_at=self.clock(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save callback request for provider {provider.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit callback request") from e

        logger.info(f"📞 Callback request {lead.id} created for provider {provider.id}")
        await send_callback_lead(self.email_sender, self.settings, provider, lead)
        return lead

    async def create_listing_request(self, data: ListingRequestCreate) -> ListingRequest:
        if self.repo.get_pending_listing_request(self.db, data.contactEmail):
            raise HTTPException(
                status_code=409,
                detail="A listing request from this email is already pending review",
            )

        try:
            request = self.repo.create_listing_request(
                self.db,
                contact_name=data.contactName,
                contact_email=data.contactEmail,
                contact_phone=data.contactPhone,
                business_name=data.businessName,
                city=data.city,
                website=clean_text(data.website, 500),
                services_offered=data.servicesOffered,
                counties_served=[c.strip() for c in data.countiesServed if c and c.strip()],
                notes=clean_text(data.notes),
                status=ListingRequestStatus.PENDING.value,
                created_at=self.clock(),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save listing request from {data.contactEmail}: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit listing request") from e

        logger.info(f"📝 Listing request {request.id} for {request.business_name}")
        await send_listing_request_emails(self.email_sender, self.settings, request)
        return request
