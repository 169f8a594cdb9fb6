"""Local authentication: password hashing, JWT tokens and logins."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from campaign.auth.models import Principal, SessionType, TokenResponse
from campaign.errors import AuthenticationError, ValidationError
from campaign.logging_config import get_logger
from campaign.settings import settings
from campaign.storage.db import db
from campaign.storage.models import Consumer, Influencer
from campaign.validators import clean, normalize_code, require_fields, split_full_name

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"


class LocalAuthService:
    """Authentication for influencers, consumers and the admin dashboard."""

    def __init__(self):
        """Initialize auth service."""
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash_password(self, password: str) -> str:
        """Hash a password with bcrypt.

        Args:
            password: Plain text password

        Returns:
            bcrypt hash; only the first 72 bytes of the password count
        """
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str | None) -> bool:
        """Check a password against a stored hash.

        Args:
            password: Plain text password
            hashed: Stored bcrypt hash, or None for accounts without one

        Returns:
            True if the password matches
        """
        if not hashed:
            return False
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== JWT TOKENS ====================

    def create_access_token(
        self,
        principal: Principal,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create JWT access token for a principal.

        Args:
            principal: Session owner, stored as the `sub`, `type` and `name` claims
            expires_delta: Token lifetime (defaults to `jwt_expire_hours`)

        Returns:
            Encoded JWT
        """
        if expires_delta is None:
            expires_delta = timedelta(hours=settings.jwt_expire_hours)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": principal.id,
            "type": principal.type.value,
            "name": principal.name,
            "exp": now + expires_delta,
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict[str, Any] | None:
        """Verify and decode JWT token.

        Args:
            token: Encoded JWT

        Returns:
            Token payload or None if invalid
        """
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            self.logger.debug("token_verification_failed", error=str(e))
            return None

    def get_principal_from_token(self, token: str) -> Principal | None:
        """Resolve a token to a principal whose record still exists.

        Args:
            token: Encoded JWT

        Returns:
            Principal, or None if the token is invalid or its account was deleted
        """
        payload = self.verify_token(token)
        if not payload:
            return None

        try:
            session_type = SessionType(payload.get("type"))
        except ValueError:
            return None
        subject = payload.get("sub")
        if not subject:
            return None

        if session_type == SessionType.ADMIN:
            if subject != settings.admin_username:
                return None
            return Principal(type=session_type, id=subject, name=subject)

        model = Influencer if session_type == SessionType.INFLUENCER else Consumer
        with db.session() as session:
            record = session.get(model, subject)
            if not record:
                return None
            return Principal(type=session_type, id=record.id, name=record.full_name)

    def _token_response(self, principal: Principal, session_data: dict[str, Any]) -> TokenResponse:
        return TokenResponse(
            access_token=self.create_access_token(principal),
            expires_in=settings.jwt_expire_hours * 3600,
            session=session_data,
        )

    # ==================== LOGIN ====================

    def login(self, identifier: str, password: str, user_type: SessionType) -> TokenResponse:
        """Log in an influencer (by code) or a consumer (by full name).

        Args:
            identifier: Influencer code or consumer full name
            password: Plain text password
            user_type: Which kind of account to look up

        Returns:
            Access token plus the session data shown by the client

        Raises:
            ValidationError: identifier or password missing
            AuthenticationError: no matching account
        """
        require_fields("Please enter your identifier and password.", identifier, password)

        if user_type == SessionType.INFLUENCER:
            return self._login_influencer(identifier, password)
        if user_type == SessionType.CONSUMER:
            return self._login_consumer(identifier, password)
        raise ValidationError("Unsupported account type.")

    def _login_influencer(self, code: str, password: str) -> TokenResponse:
        with db.session() as session:
            influencer = session.query(Influencer).filter(
                Influencer.code == normalize_code(code)
            ).first()

            if not influencer or not self.verify_password(password, influencer.password_hash):
                self.logger.info("login_failed", user_type="influencer")
                raise AuthenticationError("Influencer code or password is incorrect.")

            principal = Principal(
                type=SessionType.INFLUENCER, id=influencer.id, name=influencer.full_name
            )
            session_data = {
                "type": "influencer",
                "id": influencer.id,
                "name": influencer.full_name,
                "code": influencer.code,
                "points": influencer.points,
            }

        self.logger.info("user_authenticated", user_type="influencer", user_id=principal.id)
        return self._token_response(principal, session_data)

    def _login_consumer(self, full_name: str, password: str) -> TokenResponse:
        first_name, last_name = split_full_name(full_name)

        with db.session() as session:
            candidates = session.query(Consumer).filter(
                Consumer.first_name == first_name,
                Consumer.last_name == last_name,
            ).all()

            # Names are not unique; the password picks the account
            consumer = next(
                (c for c in candidates if self.verify_password(password, c.password_hash)),
                None,
            )
            if not consumer:
                self.logger.info("login_failed", user_type="consumer")
                raise AuthenticationError("Name or password is incorrect.")

            principal = Principal(
                type=SessionType.CONSUMER, id=consumer.id, name=consumer.full_name
            )
            session_data = {
                "type": "consumer",
                "id": consumer.id,
                "name": consumer.full_name,
                "redeemed_count": consumer.redeemed_codes_count,
            }

        self.logger.info("user_authenticated", user_type="consumer", user_id=principal.id)
        return self._token_response(principal, session_data)

    def admin_login(self, username: str, password: str) -> TokenResponse:
        """Log in to the admin dashboard with the configured credentials.

        Args:
            username: Admin username
            password: Admin password

        Returns:
            Access token for an admin session

        Raises:
            ValidationError: username or password missing
            AuthenticationError: credentials do not match settings
        """
        require_fields("Please enter both username and password.", username, password)

        username_ok = secrets.compare_digest(clean(username).encode(), settings.admin_username.encode())
        password_ok = secrets.compare_digest(password.encode(), settings.admin_password.encode())
        if not (username_ok and password_ok):
            self.logger.warning("admin_login_failed")
            raise AuthenticationError("Please check your username and password.")

        principal = Principal(
            type=SessionType.ADMIN, id=settings.admin_username, name=settings.admin_username
        )
        self.logger.info("admin_authenticated")
        return self._token_response(principal, {"type": "admin", "name": principal.name})


# Singleton instance
auth_service = LocalAuthService()
