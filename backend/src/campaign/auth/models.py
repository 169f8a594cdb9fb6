"""Authentication models: session principals and token responses."""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class SessionType(str, Enum):
    """Who a session belongs to."""
    INFLUENCER = "influencer"
    CONSUMER = "consumer"
    ADMIN = "admin"


class Principal(BaseModel):
    """The authenticated party behind a bearer token."""
    type: SessionType
    id: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.type == SessionType.ADMIN


class TokenResponse(BaseModel):
    """Login response: bearer token plus the client-side session object."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    session: dict[str, Any]
