"""Billing service - Tier changes driven by Whop payment events"""

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings
from ...models import Provider, TierLevel
from ...shared.timeutils import utcnow
from ..providers.repository import ProviderRepository
from .repository import BillingRepository

logger = logging.getLogger(__name__)

ACTIVATION_EVENTS = {
    "membership.went_valid",
    "payment.succeeded",
    "membership.created",
    "checkout.completed",
}
CANCELLATION_EVENTS = {
    "membership.went_invalid",
    "membership.cancelled",
    "subscription.cancelled",
}


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def parse_whop_event(event: dict) -> dict:
    """Pull event type, customer email and product out of the varying Whop payload shapes"""
    data = _as_dict(event.get("data"))
    membership = _as_dict(data.get("membership") or event.get("membership")) or data
    product = _as_dict(membership.get("product") or data.get("product"))
    user = _as_dict(membership.get("user") or data.get("user") or event.get("user"))

    email = user.get("email") or membership.get("email") or event.get("email")
    return {
        "event_type": event.get("action") or event.get("event") or "",
        "email": email.strip().lower() if isinstance(email, str) and email.strip() else None,
        "product_id": product.get("id") or membership.get("product_id") or event.get("product_id"),
        "product_name": (product.get("name") or membership.get("product_name") or "").lower(),
    }


def apply_verification(provider: Provider, now: datetime) -> None:
    """Mark a provider verified and clear any earlier suspension"""
    provider.is_verified = True
    provider.verified_at = now
    provider.unverified_at = None
    provider.unverified_reason = None
    provider.verification_suspended_at = None


class BillingService:
    """Service layer for payment webhook processing"""

    def __init__(self, db: Session, settings: Settings, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.repo = BillingRepository()
        self.providers = ProviderRepository()

    def _is_premium(self, product_id: Optional[str], product_name: str) -> bool:
        if "premium" in product_name or "featured" in product_name:
            return True
        return bool(self.settings.whop_premium_product_id) and product_id == self.settings.whop_premium_product_id

    def handle_event(self, event: dict) -> dict:
        parsed = parse_whop_event(event)
        event_type = parsed["event_type"]
        logger.info(f"📥 Whop webhook received: {event_type or 'unknown'}")

        if event_type in ACTIVATION_EVENTS:
            return self._activate(parsed, event)
        if event_type in CANCELLATION_EVENTS:
            return self._cancel(parsed)

        return {"received": True, "event": event_type}

    def _activate(self, parsed: dict, event: dict) -> dict:
        email = parsed["email"]
        if not email:
            logger.error("❌ No customer email in Whop webhook")
            raise HTTPException(status_code=400, detail="No customer email")

        provider = self.providers.get_by_email(self.db, email)
        if not provider:
            logger.warning(f"⚠️ No provider for {email}, storing pending upgrade")
            try:
                self.repo.store_pending_upgrade(
                    self.db,
                    email=email,
                    product_id=parsed["product_id"],
                    product_name=parsed["product_name"],
                    event_type=parsed["event_type"],
                    raw_data=event,
                    status="pending",
                    created_at=self.clock(),
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Could not store pending upgrade for {email}: {e}")
                raise HTTPException(status_code=500, detail="Webhook processing failed") from e
            return {"received": True, "warning": "Provider not found, stored for manual processing"}

        now = self.clock()
        apply_verification(provider, now)
        if self._is_premium(parsed["product_id"], parsed["product_name"]):
            tier = TierLevel.PREMIUM
            provider.is_featured = True
            provider.featured_at = now
        else:
            tier = max(provider.tier, TierLevel.VERIFIED)
        provider.tier_level = int(tier)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to upgrade provider {provider.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update provider") from e

        logger.info(f"⬆️ Upgraded {provider.name} to {tier.name}")
        return {"success": True, "provider": provider.name, "upgraded_to": tier.name.lower()}

    def _cancel(self, parsed: dict) -> dict:
        email = parsed["email"]
        if not email:
            return {"received": True}

        provider = self.providers.get_by_email(self.db, email)
        if provider:
            provider.tier_level = int(TierLevel.CLAIMED)
            provider.is_verified = False
            provider.is_available = False
            provider.is_featured = False
            provider.downgraded_at = self.clock()
            provider.downgraded_reason = "membership_cancelled"
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to downgrade provider {provider.id}: {e}")
                raise HTTPException(status_code=500, detail="Failed to update provider") from e
            logger.info(f"⬇️ Downgraded {provider.name} (membership cancelled)")

        return {"received": True, "action": "downgraded"}
