"""Pydantic schemas for store service."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from services.store_service.models import AddressType, OrderStatus, PaymentMethod

# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryBase(BaseModel):
    name: str = Field(..., max_length=100)
    slug: str = Field(..., max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[int] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[int] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class VariationCombinationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: Optional[str] = None
    variation_axis_1: Optional[str] = None
    variation_axis_2: Optional[str] = None
    variation_axis_3: Optional[str] = None
    label: str
    price: Decimal
    offer_price: Optional[Decimal] = None
    stock_quantity: int


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    category_id: Optional[int] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    main_image: Optional[str] = None
    base_price: Decimal
    offer_price: Optional[Decimal] = None
    effective_price: Decimal
    stock_quantity: int
    is_featured: bool


class ProductDetail(ProductResponse):
    variation_combinations: list[VariationCombinationResponse] = []


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


# ============================================================================
# CHECKOUT REFERENCE DATA
# ============================================================================


class ShippingMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    base_cost: Decimal
    estimated_days: Optional[int] = None


class CurrencyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    symbol: str
    exchange_rate: Decimal


# ============================================================================
# ADDRESS SCHEMAS
# ============================================================================


class AddressCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., max_length=255, alias="fullName")
    mobile_no: str = Field(..., max_length=50, alias="mobileNo")
    address_line: str = Field(..., min_length=1, alias="addressLine")
    city: str = Field("", max_length=100)
    address_type: AddressType = Field(AddressType.HOME, alias="addressType")
    is_default_shipping: bool = Field(False, alias="isDefaultShipping")
    is_default_billing: bool = Field(False, alias="isDefaultBilling")


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    mobile_no: str
    address_line: str
    city: str
    address_type: AddressType
    is_default_shipping: bool
    is_default_billing: bool


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class CartVariation(BaseModel):
    """Variation picked on a cart line.

    ``id`` is None for descriptive-only variations (label without its own stock).
    """

    id: Optional[int] = None
    name: Optional[str] = None
    value: Optional[str] = None
    price: Optional[Decimal] = None


class CartLine(BaseModel):
    product_id: int = Field(..., alias="id")
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, alias="price", ge=0)
    variation: Optional[CartVariation] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def variation_id(self) -> Optional[int]:
        return self.variation.id if self.variation else None

    @property
    def variation_label(self) -> Optional[str]:
        if not self.variation:
            return None
        parts = [p for p in (self.variation.name, self.variation.value) if p]
        return ": ".join(parts) or None


class OrderCreateRequest(BaseModel):
    """Checkout body, in the storefront's camelCase field names."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., min_length=1, max_length=255, alias="fullName")
    email: EmailStr
    mobile: str = Field(..., min_length=1, max_length=50)
    shipping_method: Union[int, str] = Field(..., alias="shippingMethod")
    items: list[CartLine] = Field(..., min_length=1)
    total_amount: Decimal = Field(..., alias="totalAmount")

    # Authenticated checkout
    shipping_address_id: Optional[int] = Field(None, alias="shippingAddressId")
    billing_address_id: Optional[int] = Field(None, alias="billingAddressId")

    # Guest checkout
    address: Optional[str] = None
    city: Optional[str] = None
    billing_address: Optional[str] = Field(None, alias="billingAddress")
    billing_city: Optional[str] = Field(None, alias="billingCity")

    reward_points_used: int = Field(0, ge=0, alias="rewardPointsUsed")
    customer_notes: Optional[str] = Field(None, alias="customerNotes")


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    variation_combination_id: Optional[int] = None
    variation_details: Optional[str] = None
    quantity: int
    item_price: Decimal
    line_total: Decimal


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    payment_method: PaymentMethod
    payment_amount: Decimal
    currency: str
    payment_date: datetime
    transaction_id: Optional[str] = None


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    user_id: int
    order_date: datetime
    status: OrderStatus
    full_name: str
    email: str
    mobile_no: str
    subtotal: Decimal
    shipping_charge: Decimal
    reward_points_used: int
    reward_discount: Decimal
    total_amount: Optional[Decimal] = None
    shipping_address_id: int
    billing_address_id: int
    shipping_method_name: str
    items: list[OrderItemResponse] = []


class OrderDetail(OrderResponse):
    payments: list[PaymentResponse] = []
    amount_paid: Decimal
    remaining_amount: Decimal


class OrderCreateResponse(BaseModel):
    order: OrderResponse
    message: str = "Order created successfully"


# ============================================================================
# PAYMENT SCHEMAS
# ============================================================================


class PaymentRequest(BaseModel):
    """Settlement request. ``amount`` is in ``currency``; omitted means pay the rest."""

    model_config = ConfigDict(populate_by_name=True)

    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    amount: Optional[Decimal] = Field(None, gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=8)
    is_partial_payment: bool = Field(False, alias="isPartialPayment")
    transaction_id: Optional[str] = Field(None, max_length=128, alias="transactionId")


class PaymentResult(BaseModel):
    """Either a recorded payment (direct methods) or a redirect to a gateway."""

    order_id: int
    payment_method: PaymentMethod
    amount: Decimal
    currency: str
    status: OrderStatus
    remaining_amount: Decimal
    payment: Optional[PaymentResponse] = None
    redirect_url: Optional[str] = None
    gateway_reference: Optional[str] = None
    message: str


# ============================================================================
# REWARD POINTS SCHEMAS
# ============================================================================


class RewardPointEntryResponse(BaseModel):
    """Ledger row, serialized in the storefront's camelCase names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: Optional[int] = Field(None, serialization_alias="orderId")
    source_order_id: Optional[int] = Field(None, serialization_alias="sourceOrderId")
    points: int
    earned_date: datetime = Field(..., serialization_alias="earnedDate")
    expiry_date: datetime = Field(..., serialization_alias="expiryDate")
    is_used: bool = Field(..., serialization_alias="isUsed")


class RewardPointsSummary(BaseModel):
    available_points: int = Field(..., serialization_alias="availablePoints")
    history: list[RewardPointEntryResponse] = []


class RewardRuleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    points_per_unit: int = Field(..., serialization_alias="pointsPerUnit")
    priority: int


class RewardPointsEstimate(BaseModel):
    """Points a product purchase would earn once the order is placed."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int = Field(..., serialization_alias="productId")
    quantity: int
    amount: Decimal
    base_points: int = Field(..., serialization_alias="basePoints")
    bonus_points: int = Field(..., serialization_alias="bonusPoints")
    estimated_points: int = Field(..., serialization_alias="estimatedPoints")
    rule: Optional[RewardRuleSummary] = None
