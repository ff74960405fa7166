"""Billing router - Whop payment webhook"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...config import Settings
from ...database import get_db
from ...dependencies import get_settings
from ...webhook_security import verify_whop_webhook
from .service import BillingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["Billing"])


def get_billing_service(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> BillingService:
    """Dependency injection for BillingService"""
    return BillingService(db, settings)


@router.post("/whop")
async def whop_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    service: BillingService = Depends(get_billing_service),
):
    """Verify the signature over the raw body before parsing anything"""
    _, raw_body = await verify_whop_webhook(request, settings.whop_webhook_secret)

    try:
        event = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"🚫 Whop webhook body is not valid JSON: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    return service.handle_event(event)


@router.get("/whop")
async def whop_webhook_status():
    return {"status": "Whop webhook endpoint active"}
