"""Authentication and registration API v1 endpoints."""

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from campaign.api.rate_limit import ADMIN_LOGIN_LIMIT, LOGIN_LIMIT, REGISTER_LIMIT, limiter
from campaign.auth.local import auth_service
from campaign.auth.middleware import require_session
from campaign.auth.models import Principal, SessionType, TokenResponse
from campaign.consumers.service import consumer_service
from campaign.influencers.service import influencer_service
from campaign.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ==================== MODELS ====================


class LoginRequest(BaseModel):
    """Influencer (code) or consumer (full name) login."""
    identifier: str = ""
    password: str = ""
    user_type: SessionType = SessionType.CONSUMER


class AdminLoginRequest(BaseModel):
    """Admin dashboard login."""
    username: str = ""
    password: str = ""


class ProfileFields(BaseModel):
    """Optional demographic fields shared by both registration forms."""
    age: int | None = Field(default=None, ge=0, le=150)
    sex: str | None = Field(default=None, max_length=20)
    location: str | None = Field(default=None, max_length=255)


class ConsumerRegisterRequest(ProfileFields):
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    password: str = Field(default="", max_length=100)


class InfluencerRegisterRequest(ConsumerRegisterRequest):
    code: str = Field(default="", max_length=32)


class RegistrationResponse(BaseModel):
    """Who was registered and what to log in with."""
    type: SessionType
    id: str
    identifier: str
    message: str


# ==================== ENDPOINTS ====================


@router.post("/login", response_model=TokenResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(request: Request, body: LoginRequest):
    """Log in as an influencer (by code) or a consumer (by full name)."""
    return auth_service.login(body.identifier, body.password, body.user_type)


@router.post("/admin/login", response_model=TokenResponse)
@limiter.limit(ADMIN_LOGIN_LIMIT)
async def admin_login(request: Request, body: AdminLoginRequest):
    """Log in to the admin dashboard."""
    return auth_service.admin_login(body.username, body.password)


@router.post("/logout")
async def logout(principal: Principal = Depends(require_session)):
    """End the session. Tokens are stateless; the client discards it."""
    logger.info("user_logged_out", user_type=principal.type.value, user_id=principal.id)
    return {"message": "You have been successfully logged out."}


@router.get("/me", response_model=Principal)
async def me(principal: Principal = Depends(require_session)):
    return principal


@router.post(
    "/register/influencer",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(REGISTER_LIMIT)
async def register_influencer(request: Request, body: InfluencerRegisterRequest):
    """Register as an influencer with a personal code."""
    influencer = influencer_service.register(
        first_name=body.first_name,
        last_name=body.last_name,
        password=body.password,
        code=body.code,
        age=body.age,
        sex=body.sex,
        location=body.location,
    )
    return RegistrationResponse(
        type=SessionType.INFLUENCER,
        id=influencer.id,
        identifier=influencer.code,
        message=f"Welcome {influencer.first_name}! Your influencer code is {influencer.code}",
    )


@router.post(
    "/register/consumer",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(REGISTER_LIMIT)
async def register_consumer(request: Request, body: ConsumerRegisterRequest):
    """Register as a consumer."""
    consumer = consumer_service.register(
        first_name=body.first_name,
        last_name=body.last_name,
        password=body.password,
        age=body.age,
        sex=body.sex,
        location=body.location,
    )
    return RegistrationResponse(
        type=SessionType.CONSUMER,
        id=consumer.id,
        identifier=consumer.full_name,
        message=f"Welcome {consumer.first_name}! You can now redeem product codes.",
    )
