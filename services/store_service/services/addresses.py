"""Address and purchaser resolution for checkout, plus the address book."""

from typing import Optional

from libs.common.logging import get_logger
from services.store_service.errors import (
    BillingAddressNotFound,
    InvalidOrderRequest,
    ShippingAddressNotFound,
)
from services.store_service.models import Address, User
from services.store_service.schemas import AddressCreate
from services.store_service.services.buyers import AuthenticatedBuyer, Buyer
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Checkout resolution
# ---------------------------------------------------------------------------


async def _owned_address(
    db: AsyncSession, *, address_id: Optional[int], user_id: int
) -> Optional[Address]:
    if address_id is None:
        return None
    result = await db.execute(
        select(Address).where(Address.id == address_id, Address.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def resolve_addresses(
    db: AsyncSession,
    buyer: Buyer,
    shipping_address_id: Optional[int] = None,
    billing_address_id: Optional[int] = None,
) -> tuple[Address, Address]:
    """Return ``(shipping, billing)`` for the buyer.

    Guests get fresh address rows flagged ``is_guest_address``; billing is the
    shipping row itself unless a different billing address was given.
    """
    if isinstance(buyer, AuthenticatedBuyer):
        shipping = await _owned_address(
            db, address_id=shipping_address_id, user_id=buyer.user_id
        )
        if shipping is None:
            raise ShippingAddressNotFound(shipping_address_id)

        if billing_address_id == shipping_address_id:
            return shipping, shipping
        billing = await _owned_address(
            db, address_id=billing_address_id, user_id=buyer.user_id
        )
        if billing is None:
            raise BillingAddressNotFound(billing_address_id)
        return shipping, billing

    contact = buyer.contact
    shipping = Address(
        user_id=None,
        full_name=contact.full_name,
        mobile_no=contact.mobile,
        address_line=contact.address,
        city=contact.city,
        is_guest_address=True,
    )
    db.add(shipping)

    billing = shipping
    if contact.has_separate_billing:
        billing = Address(
            user_id=None,
            full_name=contact.full_name,
            mobile_no=contact.mobile,
            address_line=contact.billing_address,
            city=contact.billing_city or contact.city,
            is_guest_address=True,
        )
        db.add(billing)

    await db.flush()
    return shipping, billing


async def resolve_purchaser(db: AsyncSession, buyer: Buyer) -> User:
    """Find the user the order belongs to.

    Guests are matched by email against registered accounts only; earlier
    guest users are never reused, so unrelated guest orders are not merged.
    """
    if isinstance(buyer, AuthenticatedBuyer):
        user = await db.get(User, buyer.user_id)
        if user is None:
            raise InvalidOrderRequest("Account not found", {"userId": buyer.user_id})
        return user

    contact = buyer.contact
    result = await db.execute(
        select(User)
        .where(User.email == contact.email, User.is_guest.is_(False))
        .limit(1)
    )
    user = result.scalar_one_or_none()
    if user is not None:
        logger.info("Guest checkout matched registered user %s", user.id)
        return user

    user = User(
        full_name=contact.full_name,
        email=contact.email,
        mobile_no=contact.mobile,
        is_guest=True,
    )
    db.add(user)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Address book
# ---------------------------------------------------------------------------


async def list_addresses(db: AsyncSession, *, user_id: int) -> list[Address]:
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user_id, Address.is_guest_address.is_(False))
        .order_by(Address.id)
    )
    return list(result.scalars().all())


async def create_address(
    db: AsyncSession, *, user_id: int, data: AddressCreate
) -> Address:
    """Add an address; a new default shipping/billing address replaces the old one."""
    if data.is_default_shipping:
        await db.execute(
            update(Address)
            .where(Address.user_id == user_id, Address.is_default_shipping.is_(True))
            .values(is_default_shipping=False)
        )
    if data.is_default_billing:
        await db.execute(
            update(Address)
            .where(Address.user_id == user_id, Address.is_default_billing.is_(True))
            .values(is_default_billing=False)
        )

    address = Address(user_id=user_id, is_guest_address=False, **data.model_dump())
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return address
