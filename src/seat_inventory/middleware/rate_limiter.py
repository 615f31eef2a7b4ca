"""
Rate limiting using SlowAPI
Caps how fast a single caller can hammer the seat-mutating endpoints
"""
from typing import Optional

import jwt
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from seat_inventory.core.config import settings
import logging

logger = logging.getLogger(__name__)

RESERVE_LIMIT = "20/minute"
PURCHASE_LIMIT = "10/minute"
MARKETPLACE_LIMIT = "10/minute"
GROUP_LIMIT = "30/minute"


def _token_subject(request: Request) -> Optional[str]:
    authorization = request.headers.get('Authorization', '')
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() != 'bearer' or not token:
        return None
    # only used to pick a bucket; the route itself verifies the signature
    try:
        claims = jwt.decode(token.strip(), options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    subject = claims.get('sub') or claims.get('user_id')
    return str(subject) if subject else None


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting
    Uses the token subject if present, otherwise the client IP
    """
    user_id = _token_subject(request)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_identifier,
    default_limits=["100/minute"],  # Global default
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,  # memory:// locally, redis:// in production
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
