"""Reward points models: earning rules and the signed points ledger."""

from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy import UniqueConstraint, false, true
from sqlalchemy.orm import Mapped, mapped_column, relationship


class RewardRule(Base):
    """Admin-configurable per-unit points rule."""

    __tablename__ = "store_reward_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    points_per_unit: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    priority: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    product_links = relationship("ProductRewardRule", back_populates="reward_rule")

    def __repr__(self) -> str:
        return f"<RewardRule {self.name} priority={self.priority}>"


class ProductRewardRule(Base):
    """Attaches a reward rule to a product."""

    __tablename__ = "store_product_reward_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("store_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reward_rule_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("store_reward_rules.id", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("product_id", "reward_rule_id", name="unique_product_rule"),
    )

    product = relationship("Product", back_populates="reward_rules")
    reward_rule = relationship("RewardRule", back_populates="product_links")


class RewardPointEntry(Base):
    """Signed points ledger.

    Positive rows are earned points (expire after a year). Negative rows are
    redemption events against an order. Rows are never deleted; consuming
    earned points flips ``is_used`` and links the consuming order.
    ``source_order_id`` records the order an earned row came from and never
    changes, so each order earns at most once.
    """

    __tablename__ = "store_reward_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("store_users.id", ondelete="CASCADE"), nullable=False
    )
    order_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("store_orders.id", ondelete="SET NULL"), nullable=True
    )
    source_order_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("store_orders.id", ondelete="SET NULL"), nullable=True
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    earned_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    expiry_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    is_used: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )

    __table_args__ = (
        Index("ix_store_reward_points_user_used", "user_id", "is_used", "expiry_date"),
        UniqueConstraint("source_order_id", name="unique_reward_source_order"),
    )

    def __repr__(self) -> str:
        return f"<RewardPointEntry user={self.user_id} points={self.points}>"
