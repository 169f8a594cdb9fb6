"""Influencer registration, admin management and dashboard data."""

import secrets
import string
from typing import Any

from sqlalchemy.exc import IntegrityError

from campaign.auth.local import auth_service
from campaign.errors import ConflictError, NotFoundError
from campaign.logging_config import get_logger
from campaign.settings import settings
from campaign.storage.db import db
from campaign.storage.models import Influencer
from campaign.validators import (
    check_influencer_code,
    check_password,
    clean,
    normalize_code,
    require_fields,
)

logger = get_logger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


class CodeTakenError(ConflictError):
    """Influencer code already registered."""
    title = "Code Already Exists"

    def __init__(self):
        super().__init__("This influencer code is already taken. Please choose a different one.")


def generate_code(prefix: str | None = None, length: int | None = None) -> str:
    """Generate a code like INF-7QZ."""
    prefix = settings.influencer_code_prefix if prefix is None else prefix
    length = length or settings.influencer_code_length
    return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class InfluencerService:
    """Service for managing influencers."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def code_exists(self, code: str) -> bool:
        with db.session() as session:
            return session.query(Influencer.id).filter(
                Influencer.code == normalize_code(code)
            ).first() is not None

    def register(
        self,
        first_name: str,
        last_name: str,
        password: str,
        code: str,
        age: int | None = None,
        sex: str | None = None,
        location: str | None = None,
    ) -> Influencer:
        """Self-registration with a chosen personal code.

        Args:
            first_name: Given name.
            last_name: Family name.
            password: Plain password, hashed before storage.
            code: Personal code; trimmed and upper-cased before use.
            age: Optional demographic field.
            sex: Optional demographic field.
            location: Optional demographic field.

        Returns:
            The stored influencer with zero points.

        Raises:
            ValidationError: required field missing, password too short or
                code malformed
            CodeTakenError: code already registered, including by a
                registration that committed first
        """
        require_fields(
            "Please fill in all required fields including your personal code.",
            first_name, last_name, password, code,
        )
        check_password(password)

        code = normalize_code(code)
        check_influencer_code(code)
        if self.code_exists(code):
            raise CodeTakenError()

        influencer = Influencer(
            first_name=clean(first_name),
            last_name=clean(last_name),
            code=code,
            password_hash=auth_service.hash_password(password),
            points=0,
            consumer_count=0,
            age=age,
            sex=clean(sex) or None,
            location=clean(location) or None,
        )
        self._insert(influencer)
        self.logger.info("influencer_registered", influencer_id=influencer.id, code=code)
        return influencer

    def create_by_admin(self, first_name: str, last_name: str) -> Influencer:
        """Add an influencer from the dashboard with a generated code.

        The influencer has no password, so they cannot sign in to a dashboard.

        Args:
            first_name: Given name.
            last_name: Family name.

        Returns:
            The stored influencer.

        Raises:
            ValidationError: either name missing
            ConflictError: no unused code found within the retry limit
        """
        require_fields("Please enter both first and last name.", first_name, last_name)

        code = generate_code()
        attempts = 1
        while self.code_exists(code):
            if attempts >= MAX_CODE_ATTEMPTS:
                raise ConflictError("Could not generate a unique influencer code.")
            code = generate_code()
            attempts += 1

        influencer = Influencer(
            first_name=clean(first_name),
            last_name=clean(last_name),
            code=code,
            points=0,
            consumer_count=0,
        )
        self._insert(influencer)
        self.logger.info("influencer_created", influencer_id=influencer.id, code=code)
        return influencer

    def _insert(self, influencer: Influencer) -> None:
        # The unique index is the final word when two registrations race
        try:
            with db.session() as session:
                session.add(influencer)
                session.flush()
        except IntegrityError:
            self.logger.info("influencer_code_conflict", code=influencer.code)
            raise CodeTakenError() from None

    def get(self, influencer_id: str) -> Influencer:
        with db.session() as session:
            influencer = session.get(Influencer, influencer_id)
            if not influencer:
                raise NotFoundError("Influencer not found.")
            return influencer

    def list_influencers(self) -> list[Influencer]:
        """All influencers in creation order."""
        with db.session() as session:
            return session.query(Influencer).order_by(Influencer.created_at, Influencer.id).all()

    def performance(self) -> list[dict[str, Any]]:
        """Points per influencer as a share of the leader's points."""
        influencers = sorted(self.list_influencers(), key=lambda i: i.points, reverse=True)
        max_points = max([i.points for i in influencers] + [1])
        return [
            {
                "id": i.id,
                "name": i.full_name,
                "code": i.code,
                "points": i.points,
                "percent": round(i.points / max_points * 100),
            }
            for i in influencers
        ]

    def dashboard(self, influencer_id: str) -> dict[str, Any]:
        """Data shown on the influencer's own dashboard."""
        influencer = self.get(influencer_id)
        return {
            "id": influencer.id,
            "name": influencer.full_name,
            "first_name": influencer.first_name,
            "code": influencer.code,
            "points": influencer.points,
            "consumer_count": influencer.consumer_count,
            "location": influencer.location,
            "age": influencer.age,
            "sex": influencer.sex,
        }


# Singleton instance
influencer_service = InfluencerService()
