"""Consumer registration and lookup."""

from campaign.auth.local import auth_service
from campaign.errors import NotFoundError
from campaign.logging_config import get_logger
from campaign.storage.db import db
from campaign.storage.models import Consumer
from campaign.validators import check_password, clean, require_fields

logger = get_logger(__name__)


class ConsumerService:
    """Service for consumer accounts."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def register(
        self,
        first_name: str,
        last_name: str,
        password: str,
        age: int | None = None,
        sex: str | None = None,
        location: str | None = None,
    ) -> Consumer:
        """Create a consumer account.

        Names need not be unique; logins tell same-named consumers apart by
        password.

        Returns:
            The stored consumer with no redeemed codes

        Raises:
            ValidationError: required field missing or password too short
        """
        require_fields("Please fill in all required fields.", first_name, last_name, password)
        check_password(password)

        with db.session() as session:
            consumer = Consumer(
                first_name=clean(first_name),
                last_name=clean(last_name),
                password_hash=auth_service.hash_password(password),
                age=age,
                sex=clean(sex) or None,
                location=clean(location) or None,
                redeemed_codes_count=0,
            )
            session.add(consumer)
            session.flush()

            self.logger.info("consumer_registered", consumer_id=consumer.id)
            return consumer

    def get(self, consumer_id: str) -> Consumer:
        with db.session() as session:
            consumer = session.get(Consumer, consumer_id)
            if not consumer:
                raise NotFoundError("Consumer not found.")
            return consumer

    def find_by_name(self, first_name: str, last_name: str) -> list[Consumer]:
        with db.session() as session:
            return session.query(Consumer).filter(
                Consumer.first_name == clean(first_name),
                Consumer.last_name == clean(last_name),
            ).all()


# Singleton instance
consumer_service = ConsumerService()
