"""Product code redemption against influencer codes."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import update

from campaign.errors import ConflictError, NotFoundError
from campaign.logging_config import get_logger
from campaign.realtime.changes import ChangeEvent
from campaign.realtime.feed import record_change
from campaign.settings import settings
from campaign.storage.db import db
from campaign.storage.models import Consumer, Influencer, ProductCode, Redemption, utcnow
from campaign.validators import normalize_code, require_fields

logger = get_logger(__name__)


class InvalidInfluencerCodeError(NotFoundError):
    title = "Invalid Influencer Code"

    def __init__(self):
        super().__init__("The influencer code you entered does not exist.")


class InvalidProductCodeError(NotFoundError):
    title = "Invalid Product Code"

    def __init__(self):
        super().__init__("The product code you entered does not exist.")


class CodeAlreadyUsedError(ConflictError):
    title = "Product Code Already Used"

    def __init__(self):
        super().__init__("This product code has already been redeemed.")


@dataclass
class RedemptionResult:
    """A successful redemption."""
    redemption_id: str
    influencer_code: str
    influencer_name: str
    product_code: str
    points_awarded: int
    influencer_points: int
    redeemed_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "redemption_id": self.redemption_id,
            "influencer_code": self.influencer_code,
            "influencer_name": self.influencer_name,
            "product_code": self.product_code,
            "points_awarded": self.points_awarded,
            "influencer_points": self.influencer_points,
            "redeemed_at": self.redeemed_at,
        }


class RedemptionService:
    """Service for redeeming product codes."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def redeem(
        self,
        influencer_code: str,
        product_code: str,
        consumer_id: str | None = None,
        consumer_info: dict[str, Any] | None = None,
    ) -> RedemptionResult:
        """Redeem a product code for an influencer.

        Succeeds only when the influencer code exists and the product code
        exists and is unused. All counters move in one transaction.

        Args:
            influencer_code: Code the consumer typed in, any case.
            product_code: Code printed on the product, any case.
            consumer_id: Signed-in consumer, or None for an anonymous redemption.
            consumer_info: Free-form details stored with the redemption.

        Returns:
            The stored redemption with the influencer's new point total.

        Raises:
            ValidationError: either code missing
            InvalidInfluencerCodeError: unknown influencer code
            InvalidProductCodeError: unknown product code
            CodeAlreadyUsedError: product code already redeemed, including
                by a concurrent redemption that committed first
            NotFoundError: consumer_id does not match a consumer
        """
        require_fields("Please enter both codes to continue.", influencer_code, product_code)
        influencer_code = normalize_code(influencer_code)
        product_code = normalize_code(product_code)
        points = settings.points_per_redemption

        with db.session() as session:
            influencer = session.query(Influencer).filter(
                Influencer.code == influencer_code
            ).first()
            if not influencer:
                self.logger.info("redemption_rejected", reason="unknown_influencer", influencer_code=influencer_code)
                raise InvalidInfluencerCodeError()

            code = session.query(ProductCode).filter(ProductCode.code == product_code).first()
            if not code:
                self.logger.info("redemption_rejected", reason="unknown_product_code", product_code=product_code)
                raise InvalidProductCodeError()
            if code.is_used:
                self.logger.info("redemption_rejected", reason="already_used", product_code=product_code)
                raise CodeAlreadyUsedError()

            consumer = self._find_consumer(session, consumer_id)

            # Claim the code; only one concurrent redemption can match is_used = false
            now = utcnow()
            claimed = session.execute(
                update(ProductCode)
                .where(ProductCode.id == code.id, ProductCode.is_used.is_(False))
                .values(is_used=True, used_by_influencer_id=influencer.id, used_at=now)
                .execution_options(synchronize_session=False)
            ).rowcount
            if claimed != 1:
                self.logger.warning("redemption_race_lost", product_code=product_code)
                raise CodeAlreadyUsedError()
            session.refresh(code)
            record_change(session, ChangeEvent.UPDATE, code)

            if consumer is None or not self._has_redeemed_with(session, consumer.id, influencer.id):
                influencer.consumer_count += 1
            influencer.points += points
            if consumer is not None:
                consumer.redeemed_codes_count += 1

            redemption = Redemption(
                influencer_id=influencer.id,
                product_code_id=code.id,
                consumer_id=consumer.id if consumer else None,
                consumer_info=consumer_info,
                redeemed_at=now,
            )
            session.add(redemption)
            session.flush()

            result = RedemptionResult(
                redemption_id=redemption.id,
                influencer_code=influencer.code,
                influencer_name=influencer.full_name,
                product_code=code.code,
                points_awarded=points,
                influencer_points=influencer.points,
                redeemed_at=now.isoformat(),
            )

        self.logger.info(
            "redemption_succeeded",
            influencer_code=influencer_code,
            product_code=product_code,
            consumer_id=consumer_id,
        )
        return result

    @staticmethod
    def _find_consumer(session, consumer_id: str | None) -> Consumer | None:
        if not consumer_id:
            return None
        consumer = session.get(Consumer, consumer_id)
        if not consumer:
            raise NotFoundError("Consumer not found.")
        return consumer

    @staticmethod
    def _has_redeemed_with(session, consumer_id: str, influencer_id: str) -> bool:
        return session.query(Redemption.id).filter(
            Redemption.consumer_id == consumer_id,
            Redemption.influencer_id == influencer_id,
        ).first() is not None

    def history(self, influencer_id: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
        """Most recent redemptions, optionally for one influencer."""
        with db.session() as session:
            query = session.query(Redemption, ProductCode.code).join(
                ProductCode, ProductCode.id == Redemption.product_code_id
            )
            if influencer_id:
                query = query.filter(Redemption.influencer_id == influencer_id)
            rows = query.order_by(Redemption.redeemed_at.desc()).limit(limit).all()

            return [
                {**redemption.to_dict(), "product_code": code}
                for redemption, code in rows
            ]


# Singleton instance
redemption_service = RedemptionService()
