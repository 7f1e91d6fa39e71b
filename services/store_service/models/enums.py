"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class UserType(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class AddressType(str, enum.Enum):
    HOME = "home"
    OFFICE = "office"
    OTHER = "other"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PARTIAL_PAID = "partial_paid"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CARD = "card"  # hosted page (SSLCommerz)
    BKASH = "bkash"  # mobile wallet redirect
    CASH_ON_DELIVERY = "cash_on_delivery"
    BANK_TRANSFER = "bank_transfer"
    MANUAL = "manual"

    @property
    def is_redirect(self) -> bool:
        return self in (PaymentMethod.CARD, PaymentMethod.BKASH)
