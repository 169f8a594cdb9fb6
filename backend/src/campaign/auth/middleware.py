"""Authentication dependencies for FastAPI."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from campaign.auth.local import auth_service
from campaign.auth.models import Principal, SessionType
from campaign.logging_config import get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Principal | None:
    """Resolve the bearer token, if any, to a principal.

    Args:
        request: Incoming request; the principal is also stored on `request.state`
        credentials: Bearer credentials, None when the header is missing

    Returns:
        Principal or None if not authenticated
    """
    if not credentials:
        return None

    principal = auth_service.get_principal_from_token(credentials.credentials)
    if principal:
        request.state.principal = principal
    return principal


def require_session(principal: Principal | None = Depends(get_current_session)) -> Principal:
    """Require authentication.

    Returns:
        The authenticated principal

    Raises:
        HTTPException: 401 if not authenticated
    """
    if not principal:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


class SessionTypeChecker:
    """Dependency restricting an endpoint to certain session types."""

    def __init__(self, allowed_types: list[SessionType]):
        """
        Args:
            allowed_types: Session types that may call the endpoint
        """
        self.allowed_types = allowed_types

    def __call__(self, principal: Principal = Depends(require_session)) -> Principal:
        """
        Raises:
            HTTPException: 401 if not authenticated, 403 for other session types
        """
        if principal.type not in self.allowed_types:
            logger.info("session_type_rejected", session_type=principal.type.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"This endpoint is not available for {principal.type.value} sessions",
            )
        return principal


# Pre-configured checkers
require_admin = SessionTypeChecker([SessionType.ADMIN])
require_influencer = SessionTypeChecker([SessionType.INFLUENCER])


def optional_consumer(principal: Principal | None = Depends(get_current_session)) -> Principal | None:
    """The logged-in consumer, if the caller is one."""
    if principal and principal.type == SessionType.CONSUMER:
        return principal
    return None
