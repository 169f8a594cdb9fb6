"""Database models for the redemption campaign."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    # Columns never exposed through the API or the change feed
    __private_columns__ = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Column values as JSON-safe primitives."""
        row: dict[str, Any] = {}
        for column in self.__table__.columns:
            if column.key in self.__private_columns__:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                value = value.isoformat()
            row[column.key] = value
        return row


class Influencer(Base):
    """Referrer with a unique code, earning points per redemption."""

    __tablename__ = "influencers"
    __private_columns__ = frozenset({"password_hash"})

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    consumer_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Profile
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # NULL for influencers created from the admin dashboard
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    redemptions: Mapped[list["Redemption"]] = relationship(
        "Redemption", back_populates="influencer"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Influencer(code={self.code}, points={self.points})>"


class ProductCode(Base):
    """Single-use product token printed on packaging."""

    __tablename__ = "product_codes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    used_by_influencer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("influencers.id"), nullable=True
    )
    used_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ProductCode(code={self.code}, used={self.is_used})>"


class Consumer(Base):
    """End user who redeems product codes."""

    __tablename__ = "consumers"
    __private_columns__ = frozenset({"password_hash"})

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    redeemed_codes_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Consumer(id={self.id}, redeemed={self.redeemed_codes_count})>"


class Redemption(Base):
    """A product code redeemed against an influencer code."""

    __tablename__ = "redemptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    influencer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("influencers.id"), nullable=False, index=True
    )
    # One redemption per product code
    product_code_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("product_codes.id"), nullable=False, unique=True
    )
    consumer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("consumers.id"), nullable=True, index=True
    )
    consumer_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    redeemed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    influencer: Mapped[Influencer] = relationship("Influencer", back_populates="redemptions")

    def __repr__(self) -> str:
        return f"<Redemption(influencer={self.influencer_id}, product_code={self.product_code_id})>"


# Tables exposed through the change feed
TABLES: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (Influencer, ProductCode, Consumer, Redemption)
}
