"""Subscription model: one paid coverage year for one establishment.

Schema only. Rows are removed by the database when their establishment is
deleted (ON DELETE CASCADE).
"""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from logbook_shared.schemas.common import SubscriptionStatus

from .base import TimestampMixin, UUIDMixin


class Subscription(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = (
        sa.UniqueConstraint("establishment_id", "year", name="uq_subscriptions_establishment_year"),
        sa.CheckConstraint(
            "status IN (" + ", ".join(f"'{s.value}'" for s in SubscriptionStatus) + ")",
            name="ck_subscriptions_status",
        ),
    )

    establishment_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid(),
            sa.ForeignKey(
                "establishments.id",
                name="subscriptions_establishment_fk",
                ondelete="CASCADE",
            ),
            nullable=False,
            index=True,
        )
    )
    year: int = Field(nullable=False)
    external_subscription_id: str = Field(max_length=255, nullable=False)
    status: str = Field(default=SubscriptionStatus.ACTIVE.value, max_length=50, nullable=False)
