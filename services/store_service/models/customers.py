"""Store customer models: users (registered and guest) and their addresses."""

from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import AddressType, UserType, enum_values
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship


class User(Base):
    """Storefront customers.

    Guest checkouts create ``is_guest`` users; email lookups for order
    attribution only ever match registered (non-guest) users.
    """

    __tablename__ = "store_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    mobile_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    is_guest: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false()
    )
    user_type: Mapped[UserType] = mapped_column(
        SAEnum(UserType, values_callable=enum_values, name="store_user_type_enum"),
        default=UserType.CUSTOMER,
        server_default="customer",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    # Relationships
    addresses = relationship("Address", back_populates="owner")

    def __repr__(self):
        return f"<User {self.id} guest={self.is_guest}>"


class Address(Base):
    """Shipping / billing addresses.

    Rows with ``user_id`` NULL and ``is_guest_address`` set belong to a single
    guest order and are never listed or reused.
    """

    __tablename__ = "store_addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("store_users.id", ondelete="CASCADE"),
        nullable=True,
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mobile_no: Mapped[str] = mapped_column(String(50), nullable=False)
    address_line: Mapped[str] = mapped_column(Text, nullable=False)
    city: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    address_type: Mapped[AddressType] = mapped_column(
        SAEnum(
            AddressType, values_callable=enum_values, name="store_address_type_enum"
        ),
        default=AddressType.HOME,
        server_default="home",
    )
    is_default_shipping: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false()
    )
    is_default_billing: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false()
    )
    is_guest_address: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        Index("ix_store_addresses_user_id_guest", "user_id", "is_guest_address"),
    )

    # Relationships
    owner = relationship("User", back_populates="addresses")

    def __repr__(self):
        return f"<Address {self.id} user={self.user_id}>"
