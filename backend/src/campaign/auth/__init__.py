"""Authentication for influencers, consumers and the admin dashboard."""

from campaign.auth.local import LocalAuthService, auth_service
from campaign.auth.middleware import (
    get_current_session,
    optional_consumer,
    require_admin,
    require_influencer,
    require_session,
)
from campaign.auth.models import Principal, SessionType, TokenResponse

__all__ = [
    "LocalAuthService",
    "Principal",
    "SessionType",
    "TokenResponse",
    "auth_service",
    "get_current_session",
    "optional_consumer",
    "require_admin",
    "require_influencer",
    "require_session",
]
