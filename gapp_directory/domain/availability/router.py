"""Availability router - Check-in landing page API and scheduler triggers"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import require_cron_secret
from ...config import Settings
from ...database import get_db
from ...dependencies import get_email_sender, get_settings
from ...email_service import EmailSender
from ...rate_limiter import create_rate_limiter
from .schemas import (
    AvailabilityRespondRequest,
    AvailabilityRespondResult,
    FollowupSummary,
    PingSummary,
    TokenStatus,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Availability"])

respond_rate_limit = create_rate_limiter(limit=30, window_seconds=60, key_prefix="availability_respond")

TOKEN_STATUS_CODES = {"valid": 200, "expired": 410, "used": 409, "not_found": 404}


def get_availability_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db, settings, email_sender)


# ============================================================================
# PROVIDER CHECK-IN
# ============================================================================


@router.get("/availability/validate", response_model=TokenStatus)
async def validate_availability_token(
    token: str = Query(""),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Report whether a check-in token can still be used, without consuming it"""
    result = service.validate_token(token)
    return JSONResponse(status_code=TOKEN_STATUS_CODES[result.status], content=result.model_dump(mode="json"))


@router.post("/availability/respond", response_model=AvailabilityRespondResult)
async def respond_to_availability_check(
    data: AvailabilityRespondRequest,
    service: AvailabilityService = Depends(get_availability_service),
    _: None = Depends(respond_rate_limit),
):
    """Record a provider's one-click answer"""
    return service.record_response(data.token, data.response)


# ============================================================================
# SCHEDULER TRIGGERS
# ============================================================================


@router.api_route("/cron/availability-ping", methods=["GET", "POST"], response_model=PingSummary)
async def run_availability_ping(
    service: AvailabilityService = Depends(get_availability_service),
    _: None = Depends(require_cron_secret),
):
    """Weekly job: reset stale availability and email check-in links"""
    logger.info("⏰ Availability ping triggered")
    return await service.issue_weekly_pings()


@router.api_route("/cron/availability-followup", methods=["GET", "POST"], response_model=FollowupSummary)
async def run_availability_followup(
    service: AvailabilityService = Depends(get_availability_service),
    _: None = Depends(require_cron_secret),
):
    """Daily job: warn at 24h, suspend at 48h without a response"""
    logger.info("⏰ Availability follow-up triggered")
    return await service.run_followup()
