"""API key middleware guarding ingestion and aggregation endpoints."""

from __future__ import annotations

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from src.config import settings

logger = logging.getLogger(__name__)

_EXEMPT_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}


def _provided_key(request: Request) -> str:
    key = request.headers.get("X-API-Key", "")
    if key:
        return key
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


class ApiKeyAuthMiddleware(BaseHTTPMiddleware):
    """Require an API key (X-API-Key or Bearer) when METRICS_CORE_API_KEY is set.

    Without a configured key only debug mode lets requests through.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        expected_key = settings.api_key
        if not expected_key:
            if settings.debug:
                return await call_next(request)
            logger.error("Rejecting %s %s: no API key configured", request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content={"detail": "METRICS_CORE_API_KEY not configured"},
            )

        provided = _provided_key(request)
        if not provided or not secrets.compare_digest(provided, expected_key):
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid or missing API key"},
            )

        return await call_next(request)
