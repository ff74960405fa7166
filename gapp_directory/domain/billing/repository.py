"""Billing repository - Database operations for payment webhooks"""

from sqlalchemy.orm import Session

from ...models import PendingUpgrade


class BillingRepository:
    """Repository for billing database operations"""

    @staticmethod
    def store_pending_upgrade(db: Session, **kwargs) -> PendingUpgrade:
        pending = PendingUpgrade(**kwargs)
        db.add(pending)
        db.commit()
        db.refresh(pending)
        return pending
