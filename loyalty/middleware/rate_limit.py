"""
Rate limiting with slowapi.

Limits are read from settings on every request so they can be tuned without
rebuilding the limiter. Counters live in the storage named by
RATE_LIMIT_STORAGE_URI (in-process memory by default, redis for multiple
instances). Clients are keyed by the connection address; behind a proxy,
uvicorn rewrites it from X-Forwarded-For for addresses in FORWARDED_ALLOW_IPS.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings


def default_limit() -> str:
    return settings.RATE_LIMIT_DEFAULT


def check_in_limit() -> str:
    return settings.RATE_LIMIT_CHECK_IN


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[default_limit],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)
