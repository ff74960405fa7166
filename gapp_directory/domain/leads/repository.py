"""Lead repository - Database operations for callback and listing requests"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import CallbackRequest, ListingRequest, ListingRequestStatus


class LeadRepository:
    """Repository for lead database operations"""

    @staticmethod
    def create_callback(db: Session, **kwargs) -> CallbackRequest:
        lead = CallbackRequest(**kwargs)
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead

    @staticmethod
    def get_callback(db: Session, lead_id: int) -> Optional[CallbackRequest]:
        return db.query(CallbackRequest).filter(CallbackRequest.id == lead_id).first()

    @staticmethod
    def list_callbacks(db: Session, status: Optional[str] = None, provider_id: Optional[int] = None) -> list:
        query = db.query(CallbackRequest)
        if status:
            query = query.filter(CallbackRequest.status == status)
        if provider_id:
            query = query.filter(CallbackRequest.provider_id == provider_id)
        return query.order_by(CallbackRequest.created_at.desc()).all()

    @staticmethod
    def get_pending_listing_request(db: Session, email: str) -> Optional[ListingRequest]:
        return (
            db.query(ListingRequest)
            .filter(
                func.lower(ListingRequest.contact_email) == email.lower(),
                ListingRequest.status == ListingRequestStatus.PENDING.value,
            )
            .first()
        )

    @staticmethod
    def create_listing_request(db: Session, **kwargs) -> ListingRequest:
        request = ListingRequest(**kwargs)
        db.add(request)
        db.commit()
        db.refresh(request)
        return request

    @staticmethod
    def get_listing_request(db: Session, request_id: int) -> Optional[ListingRequest]:
        return db.query(ListingRequest).filter(ListingRequest.id == request_id).first()

    @staticmethod
    def list_listing_requests(db: Session, status: Optional[str] = None) -> list:
        query = db.query(ListingRequest)
        if status:
            query = query.filter(ListingRequest.status == status)
        return query.order_by(ListingRequest.created_at.desc()).all()
