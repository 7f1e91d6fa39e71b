"""Store catalog models: categories, products, variations and checkout data."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy import String, Text, false, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# CATALOG MODELS
# ============================================================================


class Category(Base):
    """Product categories, optionally nested one level under a parent."""

    __tablename__ = "store_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("store_categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    sort_order: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent")
    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category {self.name}>"


class Product(Base):
    """Sellable products. Base stock covers lines without a tracked variation."""

    __tablename__ = "store_products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("store_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    main_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    offer_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    stock_quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true()
    )
    is_featured: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="product_stock_non_negative"),
    )

    # Relationships
    category = relationship("Category", back_populates="products")
    variation_combinations = relationship(
        "VariationCombination",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="VariationCombination.id",
    )
    reward_rules = relationship(
        "ProductRewardRule", back_populates="product", cascade="all, delete-orphan"
    )

    @property
    def effective_price(self) -> Decimal:
        return self.offer_price if self.offer_price is not None else self.base_price

    def __repr__(self):
        return f"<Product {self.id} {self.name}>"


class VariationCombination(Base):
    """A purchasable combination of up to three variation axes (e.g. Color x Size).

    Holds its own stock pool, independent of the parent product's base stock.
    """

    __tablename__ = "store_variation_combinations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("store_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sku: Mapped[Optional[str]] = mapped_column(String(100), unique=True, nullable=True)

    variation_axis_1: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    variation_axis_2: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    variation_axis_3: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    offer_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    stock_quantity: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="combination_stock_non_negative"),
    )

    # Relationships
    product = relationship("Product", back_populates="variation_combinations")

    @property
    def effective_price(self) -> Decimal:
        return self.offer_price if self.offer_price is not None else self.price

    @property
    def label(self) -> str:
        axes = [self.variation_axis_1, self.variation_axis_2, self.variation_axis_3]
        return " / ".join(a for a in axes if a)

    def __repr__(self):
        return f"<VariationCombination {self.id} stock={self.stock_quantity}>"


# ============================================================================
# CHECKOUT REFERENCE DATA
# ============================================================================


class ShippingMethod(Base):
    """Shipping options offered at checkout."""

    __tablename__ = "store_shipping_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    base_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    estimated_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true()
    )

    def __repr__(self):
        return f"<ShippingMethod {self.name}>"


class Currency(Base):
    """Display currencies. exchange_rate is units per 1 settlement-currency unit."""

    __tablename__ = "store_currencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    symbol: Mapped[str] = mapped_column(String(8), nullable=False)
    exchange_rate: Mapped[Decimal] = mapped_column(
        Numeric(18, 8), default=1, nullable=False
    )

    def __repr__(self):
        return f"<Currency {self.code} rate={self.exchange_rate}>"
