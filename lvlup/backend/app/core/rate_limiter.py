# backend/app/core/rate_limiter.py
"""
Rate limiting for the public (unauthenticated) endpoints.

Uses slowapi; counters live in Redis when ``REDIS_URL`` is set so limits hold
across workers, otherwise in process memory.
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.errors import RateLimited
from app.core.logging import logger


def get_real_client_ip(request: Request) -> str:
    """Client IP; forwarding headers count only when sent by a trusted proxy"""
    peer = get_remote_address(request)
    if peer not in settings.TRUSTED_PROXIES:
        return peer
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Nearest hop not added by one of our own proxies
        hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
        for hop in reversed(hops):
            if hop not in settings.TRUSTED_PROXIES:
                return hop
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return peer


def feedback_url_key(request: Request) -> str:
    """One bucket per public feedback link, whoever is calling"""
    return f"feedback-url:{request.path_params.get('feedback_url', '')}"


def feedback_client_key(request: Request) -> str:
    """One bucket per client per public feedback link"""
    return f"feedback-client:{get_real_client_ip(request)}:{request.path_params.get('feedback_url', '')}"


if settings.REDIS_URL:
    storage_uri = settings.REDIS_URL
    logger.info(f"Rate limiter using Redis backend: {settings.REDIS_URL.split('@')[-1]}")
else:
    storage_uri = "memory://"
    if settings.ENVIRONMENT.lower() == "production":
        logger.warning(
            "Rate limiting is using in-memory storage; limits won't be shared across instances. "
            "Configure REDIS_URL for distributed rate limiting."
        )


limiter = Limiter(
    key_func=get_real_client_ip,
    storage_uri=storage_uri,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render slowapi's exception in the application error shape"""
    logger.warning(
        f"Rate limit exceeded for {get_real_client_ip(request)} on {request.method} {request.url.path}",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    error = RateLimited(details={"limit": str(exc.detail)})
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers={"Retry-After": "3600"},
    )
