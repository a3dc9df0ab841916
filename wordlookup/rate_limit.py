"""Per-client request rate limiting."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from wordlookup.config import Settings

logger = logging.getLogger(__name__)


def client_ip(request: Request, trust_proxy_hops: int = 0) -> str:
    """
    Address of the client behind up to `trust_proxy_hops` reverse proxies.

    Walks X-Forwarded-For from the right, one entry per trusted hop, so a
    client cannot spoof its address by prepending entries.
    """
    peer = request.client.host if request.client else "unknown"
    if trust_proxy_hops <= 0:
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [addr.strip() for addr in forwarded.split(",") if addr.strip()]
    chain = [peer, *reversed(hops)]
    return chain[min(trust_proxy_hops, len(chain) - 1)]


def create_limiter(config: Settings) -> Limiter:
    """Fixed-window limiter applied to every route by SlowAPIMiddleware."""
    return Limiter(
        key_func=lambda request: client_ip(request, config.trust_proxy_hops),
        default_limits=[f"{config.rate_limit_requests}/{config.rate_limit_window_seconds} seconds"],
        enabled=config.rate_limit_enabled,
        storage_uri="memory://",
    )


def _describe_window(seconds: int) -> str:
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # Sync on purpose: SlowAPIMiddleware calls the registered handler without awaiting it
    window = int(exc.limit.limit.get_expiry())
    logger.warning(f"Rate limit exceeded path={request.url.path} limit={exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "title": "Rate limit exceeded",
            "message": "Too many requests, please try again later.",
            "resolution": f"Wait {_describe_window(window)} before making more requests.",
        },
    )
