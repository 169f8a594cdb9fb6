"""Rate limits for the public campaign endpoints.

Redemption and login are brute-forceable (guessing product codes, influencer
codes or passwords), so they get tighter limits than the default.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from campaign.settings import settings

LOGIN_LIMIT = "10/minute"
ADMIN_LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "5/minute"
REDEEM_LIMIT = "30/minute"


def client_key(request: Request) -> str:
    """Client address, taken from X-Forwarded-For when behind a trusted proxy."""
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


# Disabled outside production so tests and local dashboards are not throttled
limiter = Limiter(
    key_func=client_key,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=settings.env == "production",
)
