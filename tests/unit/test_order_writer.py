"""Unit tests for order creation (the order transaction and its pre-checks)."""

from decimal import Decimal

import pytest
from libs.auth.models import AuthUser
from services.store_service.errors import (
    InsufficientRewardPoints,
    InsufficientStock,
    InvalidOrderRequest,
    InvalidShippingMethod,
    ShippingAddressNotFound,
)
from services.store_service.models import (
    Address,
    Order,
    OrderItem,
    OrderStatus,
    RewardPointEntry,
    User,
    VariationCombination,
)
from services.store_service.schemas import OrderCreateRequest
from services.store_service.services import reward_points
from services.store_service.services.buyers import (
    AuthenticatedBuyer,
    buyer_from_request,
)
from services.store_service.services.orders import create_order
from services.store_service.services.reward_points import apply_post_commit_rewards
from sqlalchemy import func, select
from tests.factories import (
    AddressFactory,
    ProductFactory,
    RewardPointEntryFactory,
    ShippingMethodFactory,
    UserFactory,
    VariationCombinationFactory,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


async def _catalog(db, stock=10, combo_stock=None):
    """One product (optionally with a combination) and one shipping method."""
    product = ProductFactory.create(stock_quantity=stock)
    if combo_stock is not None:
        product.variation_combinations = [
            VariationCombinationFactory.create(stock_quantity=combo_stock)
        ]
    method = ShippingMethodFactory.create()
    db.add_all([product, method])
    await db.commit()
    return product, method


def _guest_request(product_id, method_id, **overrides):
    data = {
        "fullName": "Guest Buyer",
        "email": "guest@example.com",
        "mobile": "01711111111",
        "shippingMethod": method_id,
        "items": [{"id": product_id, "quantity": 2}],
        "totalAmount": "25.00",
        "address": "1 Side Rd",
        "city": "Dhaka",
    }
    data.update(overrides)
    return OrderCreateRequest.model_validate(data)


async def _registered_user(db, email="member@example.com"):
    user = UserFactory.create(email=email)
    db.add(user)
    await db.flush()
    address = AddressFactory.create(user_id=user.id)
    db.add(address)
    await db.commit()
    return user, address


def _member_request(product_id, method_id, address_id, **overrides):
    data = {
        "fullName": "Member",
        "email": "member@example.com",
        "mobile": "01722222222",
        "shippingMethod": method_id,
        "items": [{"id": product_id, "quantity": 1}],
        "totalAmount": "15.00",
        "shippingAddressId": address_id,
        "billingAddressId": address_id,
    }
    data.update(overrides)
    return OrderCreateRequest.model_validate(data)


async def _guest_order(db, request):
    return await create_order(db, buyer_from_request(None, request), request)


# ---------------------------------------------------------------------------
# Guest checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_order_computes_totals_and_writes_rows(db_session):
    product, method = await _catalog(db_session)
    request = _guest_request(product.id, method.id)

    order = await _guest_order(db_session, request)

    assert order.subtotal == Decimal("20.00")
    assert order.shipping_charge == Decimal("5.00")
    assert order.total_amount == Decimal("25.00")
    assert order.status == OrderStatus.PENDING
    assert order.order_number == f"ORD-{order.id:06d}"
    assert [(i.product_id, i.quantity, i.item_price) for i in order.items] == [
        (product.id, 2, Decimal("10.00"))
    ]
    assert order.shipping_address_id == order.billing_address_id
    assert await _count(db_session, Address) == 1
    assert await _count(db_session, RewardPointEntry) == 0

    address = await db_session.get(Address, order.shipping_address_id)
    assert address.is_guest_address is True
    assert address.user_id is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_with_separate_billing_gets_two_addresses(db_session):
    product, method = await _catalog(db_session)
    request = _guest_request(
        product.id, method.id, billingAddress="9 Office Ave", billingCity="Chittagong"
    )

    order = await _guest_order(db_session, request)

    assert order.shipping_address_id != order.billing_address_id
    billing = await db_session.get(Address, order.billing_address_id)
    assert (billing.address_line, billing.city) == ("9 Office Ave", "Chittagong")
    assert await _count(db_session, Address) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_client_total_is_not_trusted(db_session):
    product, method = await _catalog(db_session)
    request = _guest_request(product.id, method.id, totalAmount="1.00")

    order = await _guest_order(db_session, request)

    assert order.total_amount == Decimal("25.00")


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("client_total", ["1e30", "-5", "25.004999"])
async def test_out_of_range_client_total_is_ignored(db_session, client_total):
    product, method = await _catalog(db_session)
    request = _guest_request(product.id, method.id, totalAmount=client_total)

    order = await _guest_order(db_session, request)

    assert order.total_amount == Decimal("25.00")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_without_address_is_rejected(db_session):
    product, method = await _catalog(db_session)
    request = _guest_request(product.id, method.id, address="   ")

    with pytest.raises(InvalidOrderRequest):
        buyer_from_request(None, request)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_email_matching_registered_user_is_attributed(db_session):
    product, method = await _catalog(db_session)
    member, _ = await _registered_user(db_session, email="guest@example.com")

    order = await _guest_order(db_session, _guest_request(product.id, method.id))

    assert order.user_id == member.id
    assert await _count(db_session, User) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_email_never_matches_previous_guest_user(db_session):
    product, method = await _catalog(db_session)
    previous = UserFactory.create(email="guest@example.com", is_guest=True)
    db_session.add(previous)
    await db_session.commit()

    order = await _guest_order(db_session, _guest_request(product.id, method.id))

    assert order.user_id != previous.id
    purchaser = await db_session.get(User, order.user_id)
    assert purchaser.is_guest is True


# ---------------------------------------------------------------------------
# Failures leave no trace
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_insufficient_stock_writes_nothing(db_session):
    product, method = await _catalog(db_session, stock=1)
    request = _guest_request(product.id, method.id)

    with pytest.raises(InsufficientStock) as exc_info:
        await _guest_order(db_session, request)

    assert "Available: 1" in exc_info.value.message
    assert await _count(db_session, Order) == 0
    assert await _count(db_session, Address) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reservation_failure_rolls_back_whole_order(db_session):
    product, method = await _catalog(db_session, stock=0, combo_stock=5)
    combo_id = product.variation_combinations[0].id
    variation = {"id": combo_id, "name": "Color", "value": "Red"}
    # Each line fits on its own; together they exceed the combination's stock
    request = _guest_request(
        product.id,
        method.id,
        items=[
            {"id": product.id, "quantity": 3, "variation": variation},
            {"id": product.id, "quantity": 3, "variation": variation},
        ],
    )

    with pytest.raises(InsufficientStock):
        await _guest_order(db_session, request)

    assert await _count(db_session, Order) == 0
    assert await _count(db_session, OrderItem) == 0
    assert await _count(db_session, Address) == 0
    assert await _count(db_session, User) == 0
    stock = await db_session.scalar(
        select(VariationCombination.stock_quantity).where(
            VariationCombination.id == combo_id
        )
    )
    assert stock == 5


@pytest.mark.asyncio
@pytest.mark.unit
async def test_variation_order_decrements_combination_only(db_session):
    product, method = await _catalog(db_session, stock=7, combo_stock=5)
    combo_id = product.variation_combinations[0].id
    request = _guest_request(
        product.id,
        method.id,
        items=[{"id": product.id, "quantity": 2, "variation": {"id": combo_id}}],
    )

    order = await _guest_order(db_session, request)

    assert order.items[0].variation_combination_id == combo_id
    assert order.subtotal == Decimal("24.00")
    stocks = (
        await db_session.execute(
            select(VariationCombination.stock_quantity).where(
                VariationCombination.id == combo_id
            )
        )
    ).scalar_one()
    assert stocks == 3
    await db_session.refresh(product)
    assert product.stock_quantity == 7


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("shipping_method", ["express", 9999])
async def test_unknown_shipping_method_is_rejected(db_session, shipping_method):
    product, _ = await _catalog(db_session)
    request = _guest_request(product.id, 0, shippingMethod=shipping_method)

    with pytest.raises(InvalidShippingMethod):
        await _guest_order(db_session, request)

    assert await _count(db_session, Order) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_inactive_shipping_method_is_rejected(db_session):
    product, method = await _catalog(db_session)
    method.is_active = False
    await db_session.commit()

    with pytest.raises(InvalidShippingMethod):
        await _guest_order(db_session, _guest_request(product.id, method.id))


# ---------------------------------------------------------------------------
# Authenticated checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_member_order_uses_owned_addresses(db_session):
    product, method = await _catalog(db_session)
    member, address = await _registered_user(db_session)
    request = _member_request(product.id, method.id, address.id)

    order = await create_order(db_session, AuthenticatedBuyer(member.id), request)

    assert order.user_id == member.id
    assert order.shipping_address_id == address.id
    assert order.total_amount == Decimal("15.00")
    assert await _count(db_session, Address) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_member_cannot_use_someone_elses_address(db_session):
    product, method = await _catalog(db_session)
    member, _ = await _registered_user(db_session)
    _, other_address = await _registered_user(db_session, email="other@example.com")
    request = _member_request(product.id, method.id, other_address.id)

    with pytest.raises(ShippingAddressNotFound) as exc_info:
        await create_order(db_session, AuthenticatedBuyer(member.id), request)

    assert exc_info.value.status_code == 404
    assert await _count(db_session, Order) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeeming_points_applies_discount(db_session):
    product, method = await _catalog(db_session)
    member, address = await _registered_user(db_session)
    db_session.add(RewardPointEntryFactory.create(user_id=member.id, points=500))
    await db_session.commit()
    request = _member_request(
        product.id, method.id, address.id, rewardPointsUsed=300
    )

    order = await create_order(db_session, AuthenticatedBuyer(member.id), request)

    assert order.reward_points_used == 300
    assert order.reward_discount == Decimal("3.00")
    assert order.total_amount == Decimal("12.00")

    ledger = (
        await db_session.execute(
            select(
                RewardPointEntry.points,
                RewardPointEntry.is_used,
                RewardPointEntry.order_id,
            ).order_by(RewardPointEntry.id)
        )
    ).all()
    assert [tuple(row) for row in ledger] == [
        (500, True, order.id),
        (-300, True, order.id),
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redemption_survives_failed_earning(db_session, monkeypatch):
    product, method = await _catalog(db_session)
    member, address = await _registered_user(db_session)
    db_session.add(RewardPointEntryFactory.create(user_id=member.id, points=300))
    await db_session.commit()
    request = _member_request(
        product.id, method.id, address.id, rewardPointsUsed=200
    )
    order = await create_order(db_session, AuthenticatedBuyer(member.id), request)

    async def _boom(*args, **kwargs):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(reward_points, "record_earned_points", _boom)

    assert await apply_post_commit_rewards(db_session, order_id=order.id) is False

    ledger = (
        await db_session.execute(
            select(RewardPointEntry.points, RewardPointEntry.is_used).order_by(
                RewardPointEntry.id
            )
        )
    ).all()
    assert [tuple(row) for row in ledger] == [(300, True), (-200, True)]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_points_cannot_back_two_orders(db_session):
    product, method = await _catalog(db_session)
    member, address = await _registered_user(db_session)
    db_session.add(RewardPointEntryFactory.create(user_id=member.id, points=100))
    await db_session.commit()
    buyer = AuthenticatedBuyer(member.id)
    request = _member_request(
        product.id, method.id, address.id, rewardPointsUsed=100
    )

    # No post-commit work runs in between: the debit is part of the order
    first = await create_order(db_session, buyer, request)
    with pytest.raises(InsufficientRewardPoints):
        await create_order(db_session, buyer, request)

    assert first.reward_discount == Decimal("1.00")
    assert await _count(db_session, Order) == 1
    await db_session.refresh(product)
    assert product.stock_quantity == 10


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeeming_more_than_balance_fails_before_writing(db_session):
    product, method = await _catalog(db_session)
    member, address = await _registered_user(db_session)
    db_session.add(RewardPointEntryFactory.create(user_id=member.id, points=100))
    await db_session.commit()
    request = _member_request(
        product.id, method.id, address.id, rewardPointsUsed=500
    )

    with pytest.raises(InsufficientRewardPoints):
        await create_order(db_session, AuthenticatedBuyer(member.id), request)

    assert await _count(db_session, Order) == 0
    await db_session.refresh(product)
    assert product.stock_quantity == 10


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guest_cannot_redeem_points(db_session):
    product, method = await _catalog(db_session)
    request = _guest_request(product.id, method.id, rewardPointsUsed=100)

    with pytest.raises(InvalidOrderRequest):
        await _guest_order(db_session, request)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_authenticated_request_needs_both_address_ids(db_session):
    product, method = await _catalog(db_session)
    member, address = await _registered_user(db_session)
    request = _member_request(
        product.id, method.id, address.id, billingAddressId=None
    )

    with pytest.raises(InvalidOrderRequest):
        buyer_from_request(AuthUser(user_id=member.id), request)
