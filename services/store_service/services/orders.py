"""Order creation: validation, the order transaction, and order lookups."""

from decimal import Decimal
from typing import Optional

from libs.common.currency import quantize_money
from libs.common.logging import get_logger
from services.store_service.errors import (
    InvalidOrderRequest,
    InvalidShippingMethod,
    OrderCreationFailed,
    OrderNotFound,
    StoreError,
)
from services.store_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    ShippingMethod,
)
from services.store_service.schemas import OrderCreateRequest
from services.store_service.services.addresses import (
    resolve_addresses,
    resolve_purchaser,
)
from services.store_service.services.buyers import AuthenticatedBuyer, Buyer
from services.store_service.services.reward_points import (
    record_points_usage,
    validate_redemption,
)
from services.store_service.services.stock import (
    ResolvedLine,
    load_products,
    reserve_stock,
    resolve_stock_targets,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


async def get_shipping_method(db: AsyncSession, shipping_method) -> ShippingMethod:
    try:
        method_id = int(shipping_method)
    except (TypeError, ValueError):
        raise InvalidShippingMethod(shipping_method) from None

    method = await db.scalar(
        select(ShippingMethod).where(
            ShippingMethod.id == method_id, ShippingMethod.is_active.is_(True)
        )
    )
    if method is None:
        raise InvalidShippingMethod(shipping_method)
    return method


def compute_subtotal(lines: list[ResolvedLine]) -> Decimal:
    return quantize_money(sum((line.line_total for line in lines), Decimal("0")))


async def create_order(
    db: AsyncSession, buyer: Buyer, request: OrderCreateRequest
) -> Order:
    """Create an order with its items, stock decrements and reward redemption
    in one transaction.

    Everything that can be checked up front (shipping method, stock, reward
    redemption) is checked before the first write. The stock decrement and the
    redemption claim are re-checked atomically inside the transaction, so a
    concurrent order that got there first rolls this one back. Domain errors
    raised inside
    the transaction roll it back and propagate as-is; anything else becomes
    ``OrderCreationFailed``.
    """
    # 1. Shipping method and stock
    method = await get_shipping_method(db, request.shipping_method)
    products = await load_products(db, (line.product_id for line in request.items))
    lines = resolve_stock_targets(products, request.items)

    # 2. Totals
    subtotal = compute_subtotal(lines)
    shipping_charge = quantize_money(method.base_cost)

    points = request.reward_points_used
    reward_discount = Decimal("0.00")
    if points > 0:
        if not isinstance(buyer, AuthenticatedBuyer):
            raise InvalidOrderRequest(
                "Sign in to redeem reward points", {"rewardPointsUsed": points}
            )
        reward_discount = await validate_redemption(
            db,
            user_id=buyer.user_id,
            points=points,
            subtotal=subtotal,
            shipping_charge=shipping_charge,
        )

    total_amount = quantize_money(subtotal + shipping_charge - reward_discount)
    if request.total_amount != total_amount:
        logger.warning(
            "Client total %s differs from computed total %s; using computed",
            request.total_amount,
            total_amount,
        )

    # 3. Write
    try:
        shipping, billing = await resolve_addresses(
            db, buyer, request.shipping_address_id, request.billing_address_id
        )
        purchaser = await resolve_purchaser(db, buyer)

        order = Order(
            user_id=purchaser.id,
            full_name=request.full_name,
            email=str(request.email),
            mobile_no=request.mobile,
            subtotal=subtotal,
            shipping_charge=shipping_charge,
            reward_points_used=points,
            reward_discount=reward_discount,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
            shipping_address_id=shipping.id,
            billing_address_id=billing.id,
            shipping_method_name=method.name,
            customer_notes=request.customer_notes,
            items=[
                OrderItem(
                    product_id=line.product.id,
                    variation_combination_id=(
                        line.combination.id if line.combination is not None else None
                    ),
                    variation_details=line.variation_details,
                    quantity=line.quantity,
                    item_price=quantize_money(line.unit_price),
                )
                for line in lines
            ],
            payments=[],
        )
        db.add(order)
        await db.flush()

        await reserve_stock(db, lines)
        await record_points_usage(
            db, order_id=order.id, user_id=purchaser.id, points=points
        )
        await db.commit()
    except StoreError:
        await db.rollback()
        raise
    except Exception as exc:
        await db.rollback()
        logger.exception("Order transaction failed")
        raise OrderCreationFailed({"cause": type(exc).__name__}) from exc

    logger.info(
        "Created order %s for user %s (total=%s, items=%d)",
        order.order_number,
        order.user_id,
        order.total_amount,
        len(lines),
    )
    return order


async def get_order(
    db: AsyncSession, order_id: int, *, user_id: Optional[int] = None
) -> Order:
    """Load an order with items and payments; ``user_id`` restricts to the owner."""
    query = (
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.payments))
    )
    if user_id is not None:
        query = query.where(Order.user_id == user_id)
    order = await db.scalar(query)
    if order is None:
        raise OrderNotFound(order_id)
    return order


async def list_orders(db: AsyncSession, *, user_id: int) -> list[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .options(selectinload(Order.items))
        .order_by(Order.order_date.desc(), Order.id.desc())
    )
    return list(result.scalars().all())
