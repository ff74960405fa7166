"""Availability repository - Database operations for the weekly check-in workflow"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import AvailabilityToken, Provider


def _issued_since_verification():
    # Tokens from before the latest (re-)verification no longer count against the provider
    return or_(Provider.verified_at.is_(None), AvailabilityToken.created_at >= Provider.verified_at)


class AvailabilityRepository:
    """Repository for availability tokens and the provider availability fields.

    Every state transition on a token is a conditional UPDATE; the affected
    row count tells the caller whether it won the transition.
    """

    @staticmethod
    def get_token(db: Session, token: str) -> Optional[AvailabilityToken]:
        return db.query(AvailabilityToken).filter(AvailabilityToken.token == token).first()

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    # ------------------------------------------------------------------
    # Issuer
    # ------------------------------------------------------------------

    @staticmethod
    def reset_stale_availability(db: Session, cutoff: datetime) -> int:
        """Mark verified providers unavailable when their last answer is older than cutoff"""
        count = (
            db.query(Provider)
            .filter(
                Provider.is_verified.is_(True),
                Provider.is_available.is_(True),
                or_(
                    Provider.availability_updated_at.is_(None),
                    Provider.availability_updated_at < cutoff,
                ),
            )
            .update({Provider.is_available: False}, synchronize_session=False)
        )
        db.commit()
        return count

    @staticmethod
    def get_ping_candidates(db: Session) -> list[Provider]:
        return (
            db.query(Provider)
            .filter(
                Provider.is_active.is_(True),
                Provider.is_verified.is_(True),
                Provider.email.isnot(None),
                Provider.email != "",
            )
            .order_by(Provider.id)
            .all()
        )

    @staticmethod
    def create_token(
        db: Session, provider: Provider, token: str, now: datetime, expires_at: datetime
    ) -> AvailabilityToken:
        """Insert the token and stamp the provider's last ping in one commit"""
        record = AvailabilityToken(
            provider_id=provider.id,
            token=token,
            created_at=now,
            expires_at=expires_at,
        )
        db.add(record)
        provider.last_ping_sent_at = now
        db.commit()
        db.refresh(record)
        return record

    # ------------------------------------------------------------------
    # Response
    # ------------------------------------------------------------------

    @staticmethod
    def try_consume(db: Session, token_id: int, response: str, now: datetime) -> bool:
        """Set used_at/response only if the token is still open. Does not commit."""
        updated = (
            db.query(AvailabilityToken)
            .filter(
                AvailabilityToken.id == token_id,
                AvailabilityToken.used_at.is_(None),
                AvailabilityToken.suspension_processed_at.is_(None),
                AvailabilityToken.expires_at > now,
            )
            .update(
                {AvailabilityToken.used_at: now, AvailabilityToken.response: response},
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def record_provider_response(db: Session, provider_id: int, is_available: bool, now: datetime) -> None:
        """Apply an answer to the provider row. The streak increments in SQL. Does not commit."""
        db.query(Provider).filter(Provider.id == provider_id).update(
            {
                Provider.is_available: is_available,
                Provider.availability_updated_at: now,
                Provider.availability_streak: Provider.availability_streak + 1,
                Provider.updated_at: now,
            },
            synchronize_session=False,
        )

    # ------------------------------------------------------------------
    # Follow-up sweeper
    # ------------------------------------------------------------------

    @staticmethod
    def get_warning_candidates(db: Session, newest: datetime, oldest: datetime) -> list[AvailabilityToken]:
        """Unanswered, unwarned tokens created strictly between oldest and newest"""
        return (
            db.query(AvailabilityToken)
            .join(Provider, AvailabilityToken.provider_id == Provider.id)
            .filter(
                AvailabilityToken.used_at.is_(None),
                AvailabilityToken.warning_sent_at.is_(None),
                AvailabilityToken.suspension_processed_at.is_(None),
                AvailabilityToken.created_at > oldest,
                AvailabilityToken.created_at < newest,
                Provider.is_verified.is_(True),
                _issued_since_verification(),
            )
            .order_by(AvailabilityToken.id)
            .all()
        )

    @staticmethod
    def claim_warning(db: Session, token_id: int, now: datetime) -> bool:
        updated = (
            db.query(AvailabilityToken)
            .filter(
                AvailabilityToken.id == token_id,
                AvailabilityToken.used_at.is_(None),
                AvailabilityToken.warning_sent_at.is_(None),
            )
            .update({AvailabilityToken.warning_sent_at: now}, synchronize_session=False)
        )
        db.commit()
        return updated == 1

    @staticmethod
    def get_suspension_candidates(db: Session, cutoff: datetime) -> list[AvailabilityToken]:
        """Warned, still unanswered tokens created before cutoff"""
        return (
            db.query(AvailabilityToken)
            .join(Provider, AvailabilityToken.provider_id == Provider.id)
            .filter(
                AvailabilityToken.used_at.is_(None),
                AvailabilityToken.warning_sent_at.isnot(None),
                AvailabilityToken.suspension_processed_at.is_(None),
                AvailabilityToken.created_at < cutoff,
                Provider.is_verified.is_(True),
                _issued_since_verification(),
            )
            .order_by(AvailabilityToken.id)
            .all()
        )

    @staticmethod
    def claim_suspension(db: Session, token_id: int, now: datetime) -> bool:
        """Does not commit; the provider suspension joins the same transaction"""
        updated = (
            db.query(AvailabilityToken)
            .filter(
                AvailabilityToken.id == token_id,
                AvailabilityToken.used_at.is_(None),
                AvailabilityToken.warning_sent_at.isnot(None),
                AvailabilityToken.suspension_processed_at.is_(None),
            )
            .update({AvailabilityToken.suspension_processed_at: now}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def suspend_provider(db: Session, provider_id: int, now: datetime) -> bool:
        """False when the provider is no longer verified, e.g. suspended earlier in the same sweep"""
        updated = db.query(Provider).filter(Provider.id == provider_id, Provider.is_verified.is_(True)).update(
            {
                Provider.is_verified: False,
                Provider.is_available: False,
                Provider.verification_suspended_at: now,
                Provider.unverified_at: now,
                Provider.unverified_reason: "missed_checkin",
                Provider.updated_at: now,
            },
            synchronize_session=False,
        )
        return updated == 1
