"""Store payments router: settle an order directly or through a gateway."""

from typing import Optional

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_optional_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import OrderStatus
from services.store_service.schemas import (
    PaymentRequest,
    PaymentResponse,
    PaymentResult,
)
from services.store_service.services.orders import get_order
from services.store_service.services.reward_points import dispatch_order_rewards
from services.store_service.services.settlement import settle
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


@router.post("/orders/{order_id}/payment", response_model=PaymentResult)
async def pay_order(
    order_id: int,
    request: PaymentRequest,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Pay for an order.

    Direct methods record the payment now. Card and bKash return a
    ``redirect_url`` to the gateway page instead.
    """
    # Guests pay from the confirmation page; signed-in customers only their own orders
    owner = None
    if current_user is not None and not current_user.is_admin:
        owner = current_user.user_id
    order = await get_order(db, order_id, user_id=owner)

    outcome = await settle(db, order, request)

    if outcome.is_redirect:
        message = "Redirect to complete payment"
    elif order.status == OrderStatus.PAID:
        message = "Payment processed successfully"
    else:
        message = "Partial payment recorded"

    result = PaymentResult(
        order_id=order.id,
        payment_method=outcome.method,
        amount=outcome.amount,
        currency=outcome.currency,
        status=order.status,
        remaining_amount=outcome.remaining,
        payment=(
            PaymentResponse.model_validate(outcome.payment)
            if outcome.payment is not None
            else None
        ),
        redirect_url=outcome.redirect_url,
        gateway_reference=outcome.gateway_reference,
        message=message,
    )

    # Fully paid orders earn points (once per order)
    if outcome.payment is not None and order.status == OrderStatus.PAID:
        await dispatch_order_rewards(db, order_id=order.id)

    return result
