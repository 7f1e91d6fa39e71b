"""Store orders router: checkout and order history."""

from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import (
    OrderCreateRequest,
    OrderCreateResponse,
    OrderDetail,
    OrderResponse,
    PaymentResponse,
)
from services.store_service.services.buyers import (
    AuthenticatedBuyer,
    buyer_from_request,
)
from services.store_service.services.orders import (
    create_order,
    get_order,
    list_orders,
)
from services.store_service.services.reward_points import dispatch_order_rewards
from services.store_service.services.settlement import amount_paid, remaining_amount
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


def order_detail(order) -> OrderDetail:
    """Serialize an order with payments loaded, adding paid/remaining amounts."""
    base = OrderResponse.model_validate(order).model_dump()
    return OrderDetail(
        **base,
        payments=[PaymentResponse.model_validate(p) for p in order.payments],
        amount_paid=amount_paid(order),
        remaining_amount=remaining_amount(order),
    )


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post("/orders", response_model=OrderCreateResponse)
async def place_order(
    request: OrderCreateRequest,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Create an order for a signed-in customer or a guest."""
    buyer = buyer_from_request(current_user, request)
    order = await create_order(db, buyer, request)

    # Serialize before reward bookkeeping touches the session
    response = OrderCreateResponse(order=OrderResponse.model_validate(order))

    if isinstance(buyer, AuthenticatedBuyer):
        await dispatch_order_rewards(db, order_id=order.id)

    return response


# ============================================================================
# ORDER HISTORY
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the caller's orders, newest first."""
    return await list_orders(db, user_id=current_user.user_id)


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_my_order(
    order_id: int,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Get one order with its payments and the amount still owed."""
    owner = None if current_user.is_admin else current_user.user_id
    order = await get_order(db, order_id, user_id=owner)
    return order_detail(order)
