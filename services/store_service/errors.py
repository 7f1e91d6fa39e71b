"""Store domain errors.

Every error carries a user-facing ``message`` plus optional ``details`` and maps
to one HTTP status. ``app.main`` renders them as ``{"error", "details"}``.
"""

from typing import Any, Optional


class StoreError(Exception):
    """Base class for storefront domain failures."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"error": self.message, "details": self.details}


# ---------------------------------------------------------------------------
# Not found (404)
# ---------------------------------------------------------------------------


class AddressNotFound(StoreError):
    status_code = 404


class ShippingAddressNotFound(AddressNotFound):
    def __init__(self, address_id: Optional[int] = None):
        super().__init__(
            "Shipping address not found", {"shippingAddressId": address_id}
        )


class BillingAddressNotFound(AddressNotFound):
    def __init__(self, address_id: Optional[int] = None):
        super().__init__("Billing address not found", {"billingAddressId": address_id})


class ProductNotFound(StoreError):
    status_code = 404

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}", {"productId": product_id})


class VariationNotFound(StoreError):
    status_code = 404

    def __init__(self, product_id: int, variation_id: int):
        super().__init__(
            f"Variation {variation_id} not found for product {product_id}",
            {"productId": product_id, "variationId": variation_id},
        )


class OrderNotFound(StoreError):
    status_code = 404

    def __init__(self, order_id: int):
        super().__init__("Order not found", {"orderId": order_id})


class CategoryNotFound(StoreError):
    status_code = 404

    def __init__(self, category_id: int):
        super().__init__("Category not found", {"categoryId": category_id})


# ---------------------------------------------------------------------------
# Validation / conflict (400)
# ---------------------------------------------------------------------------


class InsufficientStock(StoreError):
    def __init__(self, product_name: str, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}",
            {"available": available, "requested": requested},
        )


class InvalidShippingMethod(StoreError):
    def __init__(self, shipping_method: Any):
        super().__init__(
            "Invalid shipping method", {"shippingMethod": shipping_method}
        )


class InvalidOrderRequest(StoreError):
    """Well-formed checkout body that breaks a checkout rule."""


class InsufficientRewardPoints(StoreError):
    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Cannot redeem {requested} points; only {available} available",
            {"requested": requested, "available": available},
        )


class RewardDiscountTooLarge(StoreError):
    def __init__(self, discount, limit):
        super().__init__(
            "Reward discount exceeds the allowed share of the order",
            {"discount": str(discount), "limit": str(limit)},
        )


class InvalidPartialAmount(StoreError):
    def __init__(self, amount, minimum, remaining):
        super().__init__(
            f"Partial payment must be between {minimum} and {remaining}",
            {
                "amount": str(amount),
                "minimum": str(minimum),
                "remaining": str(remaining),
            },
        )


class OverpaymentRejected(StoreError):
    def __init__(self, amount, remaining):
        super().__init__(
            f"Payment of {amount} exceeds the remaining amount {remaining}",
            {"amount": str(amount), "remaining": str(remaining)},
        )


class PaymentNotAllowed(StoreError):
    pass


class UnsupportedCurrency(StoreError):
    def __init__(self, currency: str):
        super().__init__(f"Unsupported currency: {currency}", {"currency": currency})


class CategoryConflict(StoreError):
    pass


# ---------------------------------------------------------------------------
# Transactional (500)
# ---------------------------------------------------------------------------


class OrderCreationFailed(StoreError):
    status_code = 500

    def __init__(self, details: Optional[Any] = None):
        super().__init__("Failed to create order", details)


TransactionFailed = OrderCreationFailed


# ---------------------------------------------------------------------------
# Payment gateways (502 / 504)
# ---------------------------------------------------------------------------


class GatewayError(StoreError):
    status_code = 502

    def __init__(self, gateway: str, message: str, details: Optional[Any] = None):
        self.gateway = gateway
        super().__init__(message, details)


class GatewayRejected(GatewayError):
    status_code = 502


class GatewayTimeout(GatewayError):
    status_code = 504

    def __init__(self, gateway: str):
        super().__init__(gateway, f"{gateway} did not respond in time")
