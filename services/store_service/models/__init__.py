"""Store Service models package."""

from services.store_service.models.catalog import (
    Category,
    Currency,
    Product,
    ShippingMethod,
    VariationCombination,
)
from services.store_service.models.commerce import Order, OrderItem, Payment
from services.store_service.models.customers import Address, User
from services.store_service.models.enums import (
    AddressType,
    OrderStatus,
    PaymentMethod,
    UserType,
)
from services.store_service.models.rewards import (
    ProductRewardRule,
    RewardPointEntry,
    RewardRule,
)

__all__ = [
    "Address",
    "AddressType",
    "Category",
    "Currency",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "Product",
    "ProductRewardRule",
    "RewardPointEntry",
    "RewardRule",
    "ShippingMethod",
    "User",
    "UserType",
    "VariationCombination",
]
