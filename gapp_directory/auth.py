import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings
from .dependencies import get_settings
from .webhook_security import constant_time_compare

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def check_admin_password(settings: Settings, password: Optional[str]) -> bool:
    if not settings.admin_password:
        logger.error("❌ ADMIN_PASSWORD not configured")
        raise HTTPException(status_code=500, detail="Admin access not configured")
    return constant_time_compare(password, settings.admin_password)


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """Admin routes carry the admin password as a bearer token"""
    token = credentials.credentials if credentials else None
    if not check_admin_password(settings, token):
        logger.warning("🚫 Rejected admin request with invalid credentials")
        raise HTTPException(status_code=401, detail="Unauthorized")


async def require_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """Scheduler routes: bearer CRON_SECRET when one is configured, open otherwise"""
    if not settings.cron_secret:
        return
    token = credentials.credentials if credentials else None
    if not constant_time_compare(token, settings.cron_secret):
        logger.warning("🚫 Rejected cron request with invalid secret")
        raise HTTPException(status_code=401, detail="Unauthorized")
