"""
Security headers for API responses.

Everything served here is JSON, so the policy forbids framing, resource
loading and caching outright.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

API_SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'self'",
    "Permissions-Policy": "accelerometer=(), camera=(), geolocation=(), microphone=(), payment=(), usb=()",
    "X-Permitted-Cross-Domain-Policies": "none",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"
NO_STORE = "no-store, no-cache, must-revalidate"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, is_production: bool = False, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.is_production = is_production
        self.exclude_paths = tuple(exclude_paths or ())

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        if self.exclude_paths and request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(API_SECURITY_HEADERS)
        # TLS terminates in front of production only
        if self.is_production:
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        response.headers.setdefault("Cache-Control", NO_STORE)
        return response
