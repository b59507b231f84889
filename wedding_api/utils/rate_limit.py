"""
Rate limiting utilities for API endpoints.
Uses slowapi to slow down brute force attempts on login and guestbook spam.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from wedding_api.config import settings


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Get first IP in chain (original client)
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri="memory://"
)


RATE_LIMITS = {
    "login": "5/minute",
    "guestbook": "10/minute",
}
