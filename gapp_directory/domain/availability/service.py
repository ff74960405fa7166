"""Availability service - Weekly ping, response handling and missed check-in follow-up"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import Settings
from ...email_service import (
    EmailSender,
    send_availability_ping,
    send_availability_warning,
    send_suspension_notice,
    send_suspension_report,
)
from ...models import AvailabilityResponse, AvailabilityToken, Provider
from ...shared.timeutils import utcnow
from .repository import AvailabilityRepository
from .schemas import AvailabilityRespondResult, FollowupSummary, PingSummary, TokenStatus

logger = logging.getLogger(__name__)

TOKEN_TTL = timedelta(days=7)
STALE_AFTER = timedelta(days=7)
WARNING_AFTER = timedelta(hours=24)
SUSPEND_AFTER = timedelta(hours=48)

RESPONSE_MESSAGES = {
    AvailabilityResponse.AVAILABLE: "You are now marked as available to case managers",
    AvailabilityResponse.NOT_AVAILABLE: "Got it, we'll check in again next Monday",
}


def generate_token() -> str:
    """256-bit URL-safe token (64 hex characters)"""
    return secrets.token_hex(32)


class AvailabilityService:
    """Service layer for the availability check-in workflow"""

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
        self.repo = AvailabilityRepository()

    # ========================================================================
    # TOKEN ISSUER
    # ========================================================================

    async def issue_weekly_pings(self) -> PingSummary:
        """Reset stale availability, then send one check-in token to each verified provider"""
        now = self.clock()
        summary = PingSummary()

        summary.stale_reset = self.repo.reset_stale_availability(self.db, now - STALE_AFTER)
        if summary.stale_reset:
            logger.info(f"🔄 Marked {summary.stale_reset} provider(s) unavailable after 7 days of silence")

        providers = self.repo.get_ping_candidates(self.db)
        summary.total = len(providers)
        cooldown = timedelta(hours=self.settings.availability_ping_cooldown_hours)

        for provider in providers:
            if provider.last_ping_sent_at and now - provider.last_ping_sent_at < cooldown:
                logger.info(f"⏭️ Provider {provider.id} already pinged at {provider.last_ping_sent_at}, skipping")
                summary.skipped += 1
                continue

            try:
                record = self.repo.create_token(self.db, provider, generate_token(), now, now + TOKEN_TTL)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to create availability token for provider {provider.id}: {e}")
                summary.failed += 1
                continue

            summary.sent += 1
            if not await send_availability_ping(self.email_sender, self.settings, provider, record.token):
                summary.email_failed += 1

        logger.info(
            f"📬 Availability ping complete: sent={summary.sent} failed={summary.failed} "
            f"email_failed={summary.email_failed} skipped={summary.skipped} total={summary.total}"
        )
        return summary

    # ========================================================================
    # VALIDATION AND RESPONSE
    # ========================================================================

    def _is_expired(self, record: AvailabilityToken, now: datetime) -> bool:
        # A processed suspension closes the token even before expires_at
        return now >= record.expires_at or record.suspension_processed_at is not None

    def validate_token(self, token: str) -> TokenStatus:
        record = self.repo.get_token(self.db, token) if token else None
        if not record:
            return TokenStatus(status="not_found")

        provider_name = record.provider.name if record.provider else None
        if self._is_expired(record, self.clock()):
            return TokenStatus(status="expired", provider_name=provider_name)
        if record.used_at is not None:
            return TokenStatus(status="used", provider_name=provider_name, previous_response=record.response)
        return TokenStatus(status="valid", provider_name=provider_name)

    def _already_used(self, record: AvailabilityToken) -> HTTPException:
        return HTTPException(
            status_code=409,
            detail={
                "error": "Token already used",
                "provider_name": record.provider.name if record.provider else None,
                "previous_response": record.response,
            },
        )

    def record_response(self, token: str, response: str) -> AvailabilityRespondResult:
        """Consume a token exactly once and apply the answer to the provider"""
        now = self.clock()
        record = self.repo.get_token(self.db, token) if token else None
        if not record:
            raise HTTPException(status_code=404, detail="Invalid token")
        if self._is_expired(record, now):
            raise HTTPException(status_code=410, detail="Token expired")
        if record.used_at is not None:
            raise self._already_used(record)

        try:
            response = AvailabilityResponse(response)
        except ValueError:
            raise HTTPException(
                status_code=400, detail="Invalid response. Must be 'available' or 'not_available'"
            ) from None

        try:
            if not self.repo.try_consume(self.db, record.id, response.value, now):
                self.db.rollback()
                self.db.refresh(record)
                logger.info(f"⚠️ Token {record.id} was consumed concurrently")
                if self._is_expired(record, now):
                    raise HTTPException(status_code=410, detail="Token expired")
                raise self._already_used(record)

            self.repo.record_provider_response(
                self.db, record.provider_id, response == AvailabilityResponse.AVAILABLE, now
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to record availability response for token {record.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to record response") from e

        provider = self.repo.get_provider(self.db, record.provider_id)
        self.db.refresh(provider)
        logger.info(f"✅ Provider {provider.id} answered {response.value} (streak {provider.availability_streak})")

        return AvailabilityRespondResult(
            provider_name=provider.name,
            response=response,
            message=RESPONSE_MESSAGES[response],
            availability_streak=provider.availability_streak,
        )

    # ========================================================================
    # FOLLOW-UP SWEEPER
    # ========================================================================

    async def run_followup(self) -> FollowupSummary:
        """Warn providers silent for 24h, suspend those still silent after 48h"""
        now = self.clock()
        summary = FollowupSummary()

        await self._send_warnings(now, summary)
        suspended = await self._process_suspensions(now, summary)

        if suspended:
            if not await send_suspension_report(self.email_sender, self.settings, suspended):
                summary.email_failures += 1

        logger.info(
            f"📋 Availability follow-up complete: warnings={summary.warnings_sent} "
            f"suspensions={summary.suspensions} failures={summary.failures}"
        )
        return summary

    async def _send_warnings(self, now: datetime, summary: FollowupSummary) -> None:
        candidates = self.repo.get_warning_candidates(self.db, newest=now - WARNING_AFTER, oldest=now - SUSPEND_AFTER)
        for record in candidates:
            provider_id = record.provider_id
            token_id = record.id
            provider = self.repo.get_provider(self.db, provider_id)
            # Unmarked tokens are retried on the next sweep while still inside the window
            if not await send_availability_warning(self.email_sender, self.settings, provider, record.token):
                summary.email_failures += 1
                continue

            try:
                if not self.repo.claim_warning(self.db, token_id, now):
                    continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to mark warning for provider {provider_id}: {e}")
                summary.failures += 1
                continue

            summary.warnings_sent += 1

    async def _process_suspensions(self, now: datetime, summary: FollowupSummary) -> list[Provider]:
        suspended: list[Provider] = []
        for record in self.repo.get_suspension_candidates(self.db, cutoff=now - SUSPEND_AFTER):
            provider_id = record.provider_id
            token_id = record.id
            try:
                if not self.repo.claim_suspension(self.db, token_id, now):
                    self.db.rollback()
                    continue
                newly_suspended = self.repo.suspend_provider(self.db, provider_id, now)
                self.db.commit()
                if not newly_suspended:
                    logger.info(f"Token {token_id} closed, provider {provider_id} already unverified")
                    continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to suspend provider {provider_id}: {e}")
                summary.failures += 1
                continue

            provider = self.repo.get_provider(self.db, provider_id)
            self.db.refresh(provider)
            summary.suspensions += 1
            suspended.append(provider)
            logger.warning(f"⛔ Provider {provider_id} suspended for missed check-in")

            if not await send_suspension_notice(self.email_sender, self.settings, provider):
                summary.email_failures += 1

        return suspended
