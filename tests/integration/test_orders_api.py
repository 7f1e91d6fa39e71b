"""Integration tests for checkout and order history endpoints."""

from decimal import Decimal

import pytest
from services.store_service.models import (
    Order,
    ProductRewardRule,
    RewardPointEntry,
    VariationCombination,
)
from services.store_service.services import reward_points
from sqlalchemy import func, select
from tests.conftest import auth_headers, override_settings
from tests.factories import (
    AddressFactory,
    OrderFactory,
    PaymentFactory,
    ProductFactory,
    RewardPointEntryFactory,
    RewardRuleFactory,
    ShippingMethodFactory,
    UserFactory,
    VariationCombinationFactory,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _seed_catalog(db, stock=10, combo_stock=None):
    product = ProductFactory.create(stock_quantity=stock)
    if combo_stock is not None:
        product.variation_combinations = [
            VariationCombinationFactory.create(stock_quantity=combo_stock)
        ]
    method = ShippingMethodFactory.create()
    db.add_all([product, method])
    await db.commit()
    return product, method


async def _seed_member(db, email="member@example.com"):
    user = UserFactory.create(email=email)
    db.add(user)
    await db.flush()
    address = AddressFactory.create(user_id=user.id)
    db.add(address)
    await db.commit()
    return user, address


def _guest_body(product_id, method_id, **overrides):
    body = {
        "fullName": "Guest Buyer",
        "email": "guest@example.com",
        "mobile": "01711111111",
        "shippingMethod": method_id,
        "items": [{"id": product_id, "quantity": 2, "price": 10}],
        "totalAmount": 25,
        "address": "1 Side Rd",
        "city": "Dhaka",
    }
    body.update(overrides)
    return body


def _member_body(product_id, method_id, address_id, **overrides):
    body = {
        "fullName": "Member",
        "email": "member@example.com",
        "mobile": "01722222222",
        "shippingMethod": method_id,
        "items": [{"id": product_id, "quantity": 2}],
        "totalAmount": 25,
        "shippingAddressId": address_id,
        "billingAddressId": address_id,
    }
    body.update(overrides)
    return body


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


# ---------------------------------------------------------------------------
# POST /store/orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guest_checkout_creates_pending_order(client, db_session):
    product, method = await _seed_catalog(db_session)

    response = await client.post(
        "/store/orders", json=_guest_body(product.id, method.id)
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Order created successfully"
    order = data["order"]
    assert order["status"] == "pending"
    assert Decimal(order["subtotal"]) == Decimal("20.00")
    assert Decimal(order["shipping_charge"]) == Decimal("5.00")
    assert Decimal(order["total_amount"]) == Decimal("25.00")
    assert order["order_number"] == f"ORD-{order['id']:06d}"
    assert len(order["items"]) == 1
    assert await _count(db_session, RewardPointEntry) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_guest_checkout_without_address_returns_400(client, db_session):
    product, method = await _seed_catalog(db_session)

    response = await client.post(
        "/store/orders", json=_guest_body(product.id, method.id, address="")
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Address is required for guest checkout"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_insufficient_stock_returns_400(client, db_session):
    product, method = await _seed_catalog(db_session, stock=1)

    response = await client.post(
        "/store/orders", json=_guest_body(product.id, method.id)
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == f"Insufficient stock for {product.name}. Available: 1"
    assert await _count(db_session, Order) == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_unknown_product_returns_404(client, db_session):
    _, method = await _seed_catalog(db_session)

    response = await client.post("/store/orders", json=_guest_body(99999, method.id))

    assert response.status_code == 404
    assert "details" in response.json()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_empty_cart_is_rejected(client, db_session):
    product, method = await _seed_catalog(db_session)

    response = await client.post(
        "/store/orders", json=_guest_body(product.id, method.id, items=[])
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_checkout_decrements_variation_and_awards_points(
    client, db_session
):
    product, method = await _seed_catalog(db_session, stock=0, combo_stock=5)
    combo_id = product.variation_combinations[0].id
    rule = RewardRuleFactory.create(points_per_unit=5)
    db_session.add(rule)
    await db_session.flush()
    db_session.add(ProductRewardRule(product_id=product.id, reward_rule_id=rule.id))
    await db_session.commit()
    user, address = await _seed_member(db_session)

    body = _member_body(
        product.id,
        method.id,
        address.id,
        items=[{"id": product.id, "quantity": 2, "variation": {"id": combo_id}}],
    )
    response = await client.post(
        "/store/orders", json=body, headers=auth_headers(user.id)
    )

    assert response.status_code == 200
    order = response.json()["order"]
    assert order["user_id"] == user.id
    assert Decimal(order["total_amount"]) == Decimal("29.00")

    stock = await db_session.scalar(
        select(VariationCombination.stock_quantity).where(
            VariationCombination.id == combo_id
        )
    )
    assert stock == 3
    points = await db_session.scalar(
        select(RewardPointEntry.points).where(
            RewardPointEntry.source_order_id == order["id"]
        )
    )
    assert points == 10


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_checkout_redeems_points(client, db_session):
    product, method = await _seed_catalog(db_session)
    user, address = await _seed_member(db_session)
    db_session.add(RewardPointEntryFactory.create(user_id=user.id, points=300))
    await db_session.commit()

    response = await client.post(
        "/store/orders",
        json=_member_body(product.id, method.id, address.id, rewardPointsUsed=200),
        headers=auth_headers(user.id),
    )

    assert response.status_code == 200
    order = response.json()["order"]
    assert order["reward_points_used"] == 200
    assert Decimal(order["reward_discount"]) == Decimal("2.00")
    assert Decimal(order["total_amount"]) == Decimal("23.00")

    summary = await client.get(
        "/store/account/reward-points", headers=auth_headers(user.id)
    )
    history = summary.json()["history"]
    assert [(e["points"], e["isUsed"]) for e in history] == [(-200, True), (300, True)]
    assert {e["orderId"] for e in history} == {order["id"]}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_queued_earning_does_not_let_points_be_spent_twice(
    client, db_session, monkeypatch
):
    product, method = await _seed_catalog(db_session)
    user, address = await _seed_member(db_session)
    db_session.add(RewardPointEntryFactory.create(user_id=user.id, points=100))
    await db_session.commit()
    queued = []

    async def _enqueue(function, *args):
        queued.append((function, *args))

    monkeypatch.setattr(reward_points, "enqueue", _enqueue)
    body = _member_body(product.id, method.id, address.id, rewardPointsUsed=100)

    with override_settings(REWARD_POINTS_DISPATCH="queue"):
        first = await client.post(
            "/store/orders", json=body, headers=auth_headers(user.id)
        )
        second = await client.post(
            "/store/orders", json=body, headers=auth_headers(user.id)
        )

    assert first.status_code == 200
    assert Decimal(first.json()["order"]["reward_discount"]) == Decimal("1.00")
    assert second.status_code == 400
    assert second.json()["details"] == {"requested": 100, "available": 0}
    assert await _count(db_session, Order) == 1
    assert queued == [("task_apply_order_rewards", first.json()["order"]["id"])]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_huge_client_total_is_ignored(client, db_session):
    product, method = await _seed_catalog(db_session)

    response = await client.post(
        "/store/orders", json=_guest_body(product.id, method.id, totalAmount=1e30)
    )

    assert response.status_code == 200
    assert Decimal(response.json()["order"]["total_amount"]) == Decimal("25.00")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_member_checkout_with_foreign_address_returns_404(client, db_session):
    product, method = await _seed_catalog(db_session)
    user, _ = await _seed_member(db_session)
    _, foreign = await _seed_member(db_session, email="other@example.com")

    response = await client.post(
        "/store/orders",
        json=_member_body(product.id, method.id, foreign.id),
        headers=auth_headers(user.id),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "Shipping address not found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_unknown_shipping_method_returns_400(client, db_session):
    product, _ = await _seed_catalog(db_session)

    response = await client.post(
        "/store/orders", json=_guest_body(product.id, "overnight")
    )

    assert response.status_code == 400
    assert await _count(db_session, Order) == 0


# ---------------------------------------------------------------------------
# GET /store/orders
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_history_lists_only_own_orders(client, db_session):
    user, address = await _seed_member(db_session)
    other, other_address = await _seed_member(db_session, email="other@example.com")
    for owner, addr in ((user, address), (user, address), (other, other_address)):
        db_session.add(
            OrderFactory.create(
                user_id=owner.id,
                shipping_address_id=addr.id,
                billing_address_id=addr.id,
            )
        )
    await db_session.commit()

    response = await client.get("/store/orders", headers=auth_headers(user.id))

    assert response.status_code == 200
    assert [o["user_id"] for o in response.json()] == [user.id, user.id]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_history_requires_auth(client, db_session):
    response = await client.get("/store/orders")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_detail_reports_paid_and_remaining(client, db_session):
    user, address = await _seed_member(db_session)
    order = OrderFactory.create(
        user_id=user.id,
        shipping_address_id=address.id,
        billing_address_id=address.id,
        payments=[PaymentFactory.create(payment_amount=Decimal("30.00"))],
    )
    db_session.add(order)
    await db_session.commit()

    response = await client.get(
        f"/store/orders/{order.id}", headers=auth_headers(user.id)
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["amount_paid"]) == Decimal("30.00")
    assert Decimal(data["remaining_amount"]) == Decimal("70.00")
    assert len(data["payments"]) == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_detail_hidden_from_other_customers(client, db_session):
    user, address = await _seed_member(db_session)
    other, _ = await _seed_member(db_session, email="other@example.com")
    order = OrderFactory.create(
        user_id=user.id, shipping_address_id=address.id, billing_address_id=address.id
    )
    db_session.add(order)
    await db_session.commit()

    response = await client.get(
        f"/store/orders/{order.id}", headers=auth_headers(other.id)
    )
    assert response.status_code == 404

    response = await client.get(
        f"/store/orders/{order.id}", headers=auth_headers(other.id, role="admin")
    )
    assert response.status_code == 200
