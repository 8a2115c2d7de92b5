from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


class Owner(str, Enum):
    user1 = "user1"
    user2 = "user2"

    @property
    def display_name(self) -> str:
        return "Person 1" if self is Owner.user1 else "Person 2"


class KnownCategory(str, Enum):
    food_dining = "Food & Dining"
    travel_transportation = "Travel & Transportation"
    lodging = "Lodging"
    utilities = "Utilities"
    office_supplies = "Office Supplies"
    entertainment = "Entertainment"
    health_wellness = "Health & Wellness"
    shopping = "Shopping"
    other = "Other"


OWNER_ENUM = SAEnum(
    Owner,
    name="owner",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Receipt(Base, TimestampMixin):
    __tablename__ = "receipts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner: Mapped[Owner] = mapped_column(
        OWNER_ENUM, nullable=False, default=Owner.user1
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    merchant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_cents: Mapped[Optional[int]] = mapped_column(Integer)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_receipts_owner_date", "owner", "date"),
        Index("ix_receipts_owner_category_date", "owner", "category", "date"),
        CheckConstraint("amount_cents >= 0", name="ck_receipts_amount_positive"),
        CheckConstraint(
            "tax_cents IS NULL OR (tax_cents >= 0 AND tax_cents <= amount_cents)",
            name="ck_receipts_tax_within_amount",
        ),
        CheckConstraint("length(category) > 0", name="ck_receipts_category_present"),
    )
