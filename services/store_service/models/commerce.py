"""Store commerce models: orders, order items and recorded payments."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    OrderStatus,
    PaymentMethod,
    enum_values,
)
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Orders. Immutable after creation apart from status and payments."""

    __tablename__ = "store_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("store_users.id"), index=True, nullable=False
    )
    order_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    # Contact snapshot
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    mobile_no: Mapped[str] = mapped_column(String(50), nullable=False)

    # Pricing (settlement currency)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    shipping_charge: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0", nullable=False
    )
    coupon_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0", nullable=False
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0", nullable=False
    )
    reward_points_used: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    reward_discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0", nullable=False
    )
    total_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="store_order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
        nullable=False,
    )

    # Fulfillment
    shipping_address_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("store_addresses.id"), nullable=False
    )
    billing_address_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("store_addresses.id"), nullable=False
    )
    shipping_method_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )
    shipping_address = relationship("Address", foreign_keys=[shipping_address_id])
    billing_address = relationship("Address", foreign_keys=[billing_address_id])

    @property
    def order_number(self) -> str:
        return f"ORD-{self.id:06d}"

    def __repr__(self):
        return f"<Order {self.id} status={self.status}>"


class OrderItem(Base):
    """Order line items. Created once with their order, never mutated."""

    __tablename__ = "store_order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("store_orders.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("store_products.id"), nullable=False
    )
    variation_combination_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("store_variation_combinations.id"), nullable=True
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    item_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    variation_details: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="order_item_positive_quantity"),
    )

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    variation_combination = relationship("VariationCombination")

    @property
    def line_total(self) -> Decimal:
        return self.item_price * self.quantity

    def __repr__(self):
        return f"<OrderItem product={self.product_id} qty={self.quantity}>"


# ============================================================================
# PAYMENT MODELS
# ============================================================================


class Payment(Base):
    """Money recorded against an order. Append-only; an order may have many."""

    __tablename__ = "store_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("store_orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            values_callable=enum_values,
            name="store_payment_method_enum",
        ),
        nullable=False,
    )
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="BDT", nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(128), index=True, nullable=True
    )

    __table_args__ = (
        CheckConstraint("payment_amount > 0", name="payment_positive_amount"),
        Index("ix_store_payments_order_id", "order_id"),
    )

    # Relationships
    order = relationship("Order", back_populates="payments")

    def __repr__(self):
        return f"<Payment order={self.order_id} amount={self.payment_amount}>"
