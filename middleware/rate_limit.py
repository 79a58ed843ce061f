# middleware/rate_limit.py
"""
Rate limiting configuration using slowapi.

The default limit applies to every route through SlowAPIMiddleware
(wired in main.py). Routes that move money add a tighter one:

    from middleware.rate_limit import TRADE_RATE_LIMIT, limiter

    @router.post("/buy")
    @limiter.limit(TRADE_RATE_LIMIT)
    def buy(request: Request, ...):
        ...
"""
import logging
import os

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from config.settings import get_settings

logger = logging.getLogger(__name__)

TRADE_RATE_LIMIT = os.getenv("RATE_LIMIT_TRADES", "30/minute")


def _get_rate_limit_key(request: Request) -> str:
    """
    Identify the caller for rate-limiting.

    Single-user app with no auth, so the client IP is the only key.
    Behind a proxy, the first X-Forwarded-For hop is used instead.
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first_hop = forwarded.split(",", 1)[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


_settings = get_settings()

limiter = Limiter(
    key_func=_get_rate_limit_key,
    default_limits=[_settings.rate_limit_default],
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=_settings.rate_limit_enabled,
)
