"""
Webhook Security Module

Signature verification for the billing webhook:
- Constant-time signature comparison
- Verification over the raw request body, before any JSON parsing
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

WHOP_SIGNATURE_HEADERS = ("whop-signature", "x-whop-signature")


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two strings in constant time. Empty values never match."""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload as lowercase hex"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(secret: str, payload: bytes, signature: Optional[str]) -> bool:
    if not signature:
        return False
    # Some senders prefix the digest with the algorithm name
    if signature.startswith("sha256="):
        signature = signature[len("sha256="):]
    return constant_time_compare(compute_hmac_sha256(secret, payload), signature.strip().lower())


async def verify_whop_webhook(
    request: Request, secret: Optional[str], raise_on_failure: bool = True
) -> tuple[bool, bytes]:
    """
    Verify Whop webhook signature.

    Whop uses:
    - Header: 'whop-signature' or 'x-whop-signature' (hex HMAC-SHA256 of the raw body)

    Returns:
        Tuple of (is_valid, raw_body)
    """
    raw_body = await request.body()

    if not secret:
        logger.error("❌ WHOP_WEBHOOK_SECRET not configured")
        if raise_on_failure:
            raise HTTPException(status_code=500, detail="Webhook secret not configured")
        return False, raw_body

    signature = None
    for header in WHOP_SIGNATURE_HEADERS:
        signature = request.headers.get(header)
        if signature:
            break

    if not signature:
        logger.warning("🚫 Whop webhook missing signature header")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Missing webhook signature")
        return False, raw_body

    if not verify_signature(secret, raw_body, signature):
        logger.warning("🚫 Whop webhook signature mismatch")
        if raise_on_failure:
            raise HTTPException(status_code=401, detail="Invalid signature")
        return False, raw_body

    logger.debug("✅ Whop webhook signature verified")
    return True, raw_body
