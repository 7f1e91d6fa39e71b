"""Payment settlement: amounts, currency, and dispatch to a payment backend.

Card and bKash payments only start a gateway session and return a redirect;
the Payment row for those arrives with the gateway callback. Direct methods
(cash on delivery, bank transfer, manual) record the Payment immediately.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx
from libs.common.config import get_settings
from libs.common.currency import (
    UnknownCurrencyError,
    convert,
    quantize_money,
    to_decimal,
)
from libs.common.logging import get_logger
from services.store_service.bkash_client import BkashClient, BkashError
from services.store_service.errors import (
    GatewayRejected,
    GatewayTimeout,
    InvalidPartialAmount,
    OverpaymentRejected,
    PaymentNotAllowed,
    UnsupportedCurrency,
)
from services.store_service.models import (
    Address,
    Currency,
    Order,
    OrderStatus,
    Payment,
    PaymentMethod,
)
from services.store_service.schemas import PaymentRequest
from services.store_service.sslcommerz_client import (
    CheckoutCustomer,
    SslCommerzClient,
    SslCommerzError,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Largest rounding gap treated as "paying exactly the remaining amount"
ROUNDING_TOLERANCE = Decimal("0.01")


@dataclass
class SettlementOutcome:
    order: Order
    method: PaymentMethod
    amount: Decimal
    currency: str
    remaining: Decimal
    payment: Optional[Payment] = None
    redirect_url: Optional[str] = None
    gateway_reference: Optional[str] = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_url is not None


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def resolve_order_total(order: Order) -> Decimal:
    """Stored total, or the total rebuilt from its parts when missing or NaN."""
    total = order.total_amount
    if total is not None and not to_decimal(total).is_nan():
        return to_decimal(total)

    rebuilt = (
        to_decimal(order.subtotal or 0)
        + to_decimal(order.shipping_charge or 0)
        - to_decimal(order.coupon_amount or 0)
        - to_decimal(order.discount_amount or 0)
        - to_decimal(order.reward_discount or 0)
    )
    logger.warning("Order %s has no usable total; rebuilt as %s", order.id, rebuilt)
    return quantize_money(rebuilt)


def amount_paid(order: Order) -> Decimal:
    return sum(
        (to_decimal(p.payment_amount) for p in order.payments), Decimal("0")
    )


def remaining_amount(order: Order) -> Decimal:
    return max(Decimal("0"), resolve_order_total(order) - amount_paid(order))


def validate_partial_amount(amount, remaining, ratio=None) -> Decimal:
    """Accept ``amount`` iff ``ratio * remaining <= amount <= remaining``."""
    if ratio is None:
        ratio = get_settings().MIN_PARTIAL_PAYMENT_RATIO
    amount = to_decimal(amount)
    remaining = to_decimal(remaining)
    minimum = remaining * to_decimal(ratio)
    if amount < minimum or amount > remaining:
        raise InvalidPartialAmount(amount, quantize_money(minimum), remaining)
    return amount


async def load_exchange_rates(db: AsyncSession) -> dict[str, Decimal]:
    result = await db.execute(select(Currency.code, Currency.exchange_rate))
    rates = {code.upper(): to_decimal(rate) for code, rate in result.all()}
    rates.setdefault(get_settings().SETTLEMENT_CURRENCY.upper(), Decimal("1"))
    return rates


async def to_settlement_currency(
    db: AsyncSession, amount: Decimal, currency: str
) -> Decimal:
    settlement = get_settings().SETTLEMENT_CURRENCY
    if currency.upper() == settlement.upper():
        return amount
    rates = await load_exchange_rates(db)
    try:
        return quantize_money(convert(amount, currency, settlement, rates))
    except UnknownCurrencyError:
        raise UnsupportedCurrency(currency) from None


def _settle_amount(requested: Decimal, remaining: Decimal, is_partial: bool) -> Decimal:
    """Check the requested amount against the remaining balance."""
    settings = get_settings()
    if abs(requested - remaining) <= ROUNDING_TOLERANCE:
        return remaining

    if requested < remaining or is_partial:
        return validate_partial_amount(requested, remaining)

    if settings.OVERPAYMENT_POLICY == "reject":
        raise OverpaymentRejected(requested, remaining)
    logger.info("Accepting overpayment of %s as credit", requested - remaining)
    return requested


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


async def _start_card_session(
    db: AsyncSession, order: Order, amount: Decimal, client: Optional[SslCommerzClient]
) -> tuple[str, str]:
    address = await db.get(Address, order.billing_address_id)
    customer = CheckoutCustomer(
        name=order.full_name,
        email=order.email,
        phone=order.mobile_no,
        address=address.address_line if address else "",
        city=address.city if address else "",
    )
    try:
        client = client or SslCommerzClient()
        session = await client.initialize(
            order_id=order.id,
            amount=amount,
            customer=customer,
            currency=get_settings().SETTLEMENT_CURRENCY,
        )
    except httpx.TimeoutException:
        raise GatewayTimeout("SSLCommerz") from None
    except (SslCommerzError, httpx.HTTPError, ValueError) as exc:
        raise GatewayRejected(
            "SSLCommerz", "Failed to start card payment", str(exc)
        ) from exc
    return session.gateway_url, session.transaction_id


async def _start_wallet_payment(
    order: Order, amount: Decimal, client: Optional[BkashClient]
) -> tuple[str, str]:
    try:
        client = client or BkashClient()
        payment = await client.create_payment(
            order_id=order.id,
            amount=amount,
            currency=get_settings().SETTLEMENT_CURRENCY,
        )
    except httpx.TimeoutException:
        raise GatewayTimeout("bKash") from None
    except (BkashError, httpx.HTTPError, ValueError) as exc:
        raise GatewayRejected(
            "bKash", "Failed to start bKash payment", str(exc)
        ) from exc
    return payment.redirect_url, payment.payment_id


async def settle(
    db: AsyncSession,
    order: Order,
    request: PaymentRequest,
    *,
    sslcommerz: Optional[SslCommerzClient] = None,
    bkash: Optional[BkashClient] = None,
) -> SettlementOutcome:
    """Collect money for an order. ``order.payments`` must be loaded.

    Gateway failures leave the order untouched and are not retried.
    """
    settings = get_settings()

    # 1. Order must still accept payments
    if order.status == OrderStatus.CANCELLED:
        raise PaymentNotAllowed("Order is cancelled", {"orderId": order.id})
    remaining = remaining_amount(order)
    if remaining <= 0:
        raise PaymentNotAllowed("Order is already paid", {"orderId": order.id})

    # 2. Amount in settlement currency
    currency = (request.currency or settings.SETTLEMENT_CURRENCY).upper()
    if request.amount is None:
        requested = remaining
    else:
        requested = await to_settlement_currency(db, request.amount, currency)
    amount = quantize_money(
        _settle_amount(requested, remaining, request.is_partial_payment)
    )

    outcome = SettlementOutcome(
        order=order,
        method=request.payment_method,
        amount=amount,
        currency=settings.SETTLEMENT_CURRENCY,
        remaining=remaining,
    )

    # 3. Redirect methods
    if request.payment_method == PaymentMethod.CARD:
        outcome.redirect_url, outcome.gateway_reference = await _start_card_session(
            db, order, amount, sslcommerz
        )
        return outcome
    if request.payment_method == PaymentMethod.BKASH:
        outcome.redirect_url, outcome.gateway_reference = await _start_wallet_payment(
            order, amount, bkash
        )
        return outcome

    # 4. Direct methods
    payment = Payment(
        order_id=order.id,
        payment_method=request.payment_method,
        payment_amount=amount,
        currency=settings.SETTLEMENT_CURRENCY,
        transaction_id=request.transaction_id,
    )
    order.payments.append(payment)
    order.status = (
        OrderStatus.PAID if amount >= remaining else OrderStatus.PARTIAL_PAID
    )
    await db.commit()

    outcome.payment = payment
    outcome.remaining = remaining_amount(order)
    logger.info(
        "Recorded %s payment of %s on order %s (status=%s)",
        request.payment_method.value,
        amount,
        order.order_number,
        order.status.value,
    )
    return outcome
