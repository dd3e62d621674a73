from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from devhub.api.deps import client_ip
from devhub.shared.config import get_settings


logger = logging.getLogger(__name__)


def rate_limit_key(request: Request) -> str:
    return client_ip(request, request.headers.get("x-forwarded-for")) or "unknown"


def login_limit() -> str:
    return get_settings().rate_limit_login


def callback_limit() -> str:
    return get_settings().rate_limit_callback


def checkout_limit() -> str:
    return get_settings().rate_limit_checkout


def webhook_limit() -> str:
    return get_settings().rate_limit_webhook


def build_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=rate_limit_key,
        storage_uri=settings.rate_limit_storage_uri,
        enabled=settings.rate_limit_enabled,
    )


limiter = build_limiter()


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(
        "rate_limit: exceeded path=%s key=%s limit=%s",
        request.url.path,
        rate_limit_key(request),
        exc.detail,
    )
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
    )
