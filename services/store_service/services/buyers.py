"""Who is buying: an authenticated account or a guest with contact details."""

from dataclasses import dataclass
from typing import Optional, Union

from libs.auth.models import AuthUser
from services.store_service.errors import InvalidOrderRequest
from services.store_service.schemas import OrderCreateRequest


@dataclass(frozen=True)
class GuestContact:
    full_name: str
    email: str
    mobile: str
    address: str
    city: str
    billing_address: Optional[str] = None
    billing_city: Optional[str] = None

    @property
    def has_separate_billing(self) -> bool:
        if not self.billing_address:
            return False
        billing_city = self.billing_city or self.city
        return (self.billing_address, billing_city) != (self.address, self.city)


@dataclass(frozen=True)
class AuthenticatedBuyer:
    user_id: int


@dataclass(frozen=True)
class GuestBuyer:
    contact: GuestContact


Buyer = Union[AuthenticatedBuyer, GuestBuyer]


def buyer_from_request(
    current_user: Optional[AuthUser], request: OrderCreateRequest
) -> Buyer:
    """Pick the buyer variant and check the fields that variant requires."""
    if current_user is not None:
        if not request.shipping_address_id or not request.billing_address_id:
            raise InvalidOrderRequest(
                "Shipping and billing addresses are required",
                {"required": ["shippingAddressId", "billingAddressId"]},
            )
        return AuthenticatedBuyer(user_id=current_user.user_id)

    if not request.address or not request.address.strip():
        raise InvalidOrderRequest(
            "Address is required for guest checkout", {"required": ["address"]}
        )
    return GuestBuyer(
        contact=GuestContact(
            full_name=request.full_name,
            email=str(request.email),
            mobile=request.mobile,
            address=request.address.strip(),
            city=(request.city or "").strip(),
            billing_address=(request.billing_address or "").strip() or None,
            billing_city=(request.billing_city or "").strip() or None,
        )
    )
