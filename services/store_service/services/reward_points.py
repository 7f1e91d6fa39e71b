"""Reward points ledger.

Earning: 1 point per 100 currency units of the order total, plus
``quantity * points_per_unit`` from the highest-priority active rule attached
to each product. Redemption: one negative entry per order, then the oldest
expiring unused positive entries are marked used until they cover the
request. Entries are consumed whole.

Redemption is written inside the order transaction so the same points cannot
back two orders. Earning runs after the order commits, inside
``apply_post_commit_rewards``; a failure there is logged and never reaches the
order response.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from libs.common.arq_config import enqueue
from libs.common.config import get_settings
from libs.common.currency import quantize_money, to_decimal
from libs.common.datetime_utils import days_after, utc_now
from libs.common.logging import get_logger
from services.store_service.errors import (
    InsufficientRewardPoints,
    RewardDiscountTooLarge,
)
from services.store_service.models import (
    Order,
    ProductRewardRule,
    RewardPointEntry,
    RewardRule,
    User,
)
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

CURRENCY_UNITS_PER_EARNED_POINT = 100
HISTORY_LIMIT = 100


class _PointsItem(Protocol):
    product_id: int
    quantity: int


# ---------------------------------------------------------------------------
# Earning
# ---------------------------------------------------------------------------


def best_rule(rules: Iterable[RewardRule]) -> Optional[RewardRule]:
    """Highest-priority active rule (first one wins on a priority tie)."""
    active = [rule for rule in rules if rule.is_active]
    if not active:
        return None
    return max(active, key=lambda rule: rule.priority)


def compute_earned_points(
    total_amount,
    items: Iterable[_PointsItem],
    rules_by_product: Mapping[int, Sequence[RewardRule]],
) -> int:
    total = to_decimal(total_amount or 0)
    points = max(0, math.floor(total / CURRENCY_UNITS_PER_EARNED_POINT))

    for item in items:
        rule = best_rule(rules_by_product.get(item.product_id, ()))
        if rule is not None:
            points += item.quantity * rule.points_per_unit
    return points


async def load_rules_by_product(
    db: AsyncSession, product_ids: Iterable[int]
) -> dict[int, list[RewardRule]]:
    ids = set(product_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(ProductRewardRule)
        .where(ProductRewardRule.product_id.in_(ids))
        .options(selectinload(ProductRewardRule.reward_rule))
    )
    rules: dict[int, list[RewardRule]] = {}
    for link in result.scalars().all():
        rules.setdefault(link.product_id, []).append(link.reward_rule)
    return rules


@dataclass
class PointsEstimate:
    """Points a purchase of one product would earn, split by source."""

    product_id: int
    quantity: int
    amount: Decimal
    base_points: int
    bonus_points: int
    rule: Optional[RewardRule] = None

    @property
    def estimated_points(self) -> int:
        return self.base_points + self.bonus_points


@dataclass
class _EstimatedLine:
    product_id: int
    quantity: int


async def estimate_points(
    db: AsyncSession, *, product_id: int, quantity: int, unit_price: Decimal
) -> PointsEstimate:
    """Preview what buying ``quantity`` units would earn, using the same rules
    as ``record_earned_points``."""
    amount = quantize_money(to_decimal(unit_price) * quantity)
    rules = await load_rules_by_product(db, [product_id])
    line = _EstimatedLine(product_id=product_id, quantity=quantity)

    base_points = compute_earned_points(amount, (), {})
    total_points = compute_earned_points(amount, [line], rules)
    return PointsEstimate(
        product_id=product_id,
        quantity=quantity,
        amount=amount,
        base_points=base_points,
        bonus_points=total_points - base_points,
        rule=best_rule(rules.get(product_id, ())),
    )


async def record_earned_points(
    db: AsyncSession,
    *,
    order_id: int,
    user_id: int,
    total_amount,
    items: Sequence[_PointsItem],
) -> Optional[RewardPointEntry]:
    """Insert the order's earned points. Returns None when nothing was added.

    Each order earns once (keyed on ``source_order_id``); repeats are no-ops.
    """
    existing = await db.scalar(
        select(RewardPointEntry.id).where(RewardPointEntry.source_order_id == order_id)
    )
    if existing is not None:
        logger.info("Reward points already awarded for order %s", order_id)
        return None

    rules = await load_rules_by_product(db, (item.product_id for item in items))
    points = compute_earned_points(total_amount, items, rules)
    if points <= 0:
        return None

    settings = get_settings()
    now = utc_now()
    entry = RewardPointEntry(
        user_id=user_id,
        order_id=order_id,
        source_order_id=order_id,
        points=points,
        earned_date=now,
        expiry_date=days_after(settings.REWARD_POINTS_VALIDITY_DAYS, now),
        is_used=False,
    )
    db.add(entry)
    await db.flush()

    logger.info(
        "Awarded %d reward points to user %s for order %s", points, user_id, order_id
    )
    return entry


# ---------------------------------------------------------------------------
# Balance and redemption
# ---------------------------------------------------------------------------


async def get_available_points(db: AsyncSession, user_id: int) -> int:
    """Unused unexpired earned points plus every redemption entry, floored at 0."""
    earned = await db.scalar(
        select(func.coalesce(func.sum(RewardPointEntry.points), 0)).where(
            RewardPointEntry.user_id == user_id,
            RewardPointEntry.points > 0,
            RewardPointEntry.is_used.is_(False),
            RewardPointEntry.expiry_date > utc_now(),
        )
    )
    redeemed = await db.scalar(
        select(func.coalesce(func.sum(RewardPointEntry.points), 0)).where(
            RewardPointEntry.user_id == user_id,
            RewardPointEntry.points < 0,
        )
    )
    return max(0, int(earned) + int(redeemed))


def points_to_discount(points: int) -> Decimal:
    settings = get_settings()
    return quantize_money(Decimal(points) / settings.REWARD_POINTS_PER_CURRENCY_UNIT)


async def validate_redemption(
    db: AsyncSession,
    *,
    user_id: int,
    points: int,
    subtotal: Decimal,
    shipping_charge: Decimal,
) -> Decimal:
    """Check a redemption request and return the discount it buys.

    Runs before anything is written; raises ``InsufficientRewardPoints`` or
    ``RewardDiscountTooLarge``.
    """
    if points <= 0:
        return Decimal("0.00")

    available = await get_available_points(db, user_id)
    if points > available:
        raise InsufficientRewardPoints(points, available)

    settings = get_settings()
    discount = points_to_discount(points)
    limit = quantize_money(
        (subtotal + shipping_charge) * to_decimal(settings.REWARD_MAX_DISCOUNT_RATIO)
    )
    if discount > limit:
        raise RewardDiscountTooLarge(discount, limit)
    return discount


async def record_points_usage(
    db: AsyncSession, *, order_id: int, user_id: int, points: int
) -> list[RewardPointEntry]:
    """Record a redemption and mark the earned entries it consumes.

    Each entry is claimed with a conditional update, so an entry already taken
    by a concurrent order is skipped. Raises ``InsufficientRewardPoints`` when
    the claimed entries do not cover the request. Returns the positive entries
    marked used. Redeeming 0 points is a no-op.
    """
    if points <= 0:
        return []

    now = utc_now()
    result = await db.execute(
        select(RewardPointEntry)
        .where(
            RewardPointEntry.user_id == user_id,
            RewardPointEntry.points > 0,
            RewardPointEntry.is_used.is_(False),
            RewardPointEntry.expiry_date > now,
        )
        .order_by(RewardPointEntry.expiry_date, RewardPointEntry.id)
    )

    consumed: list[RewardPointEntry] = []
    covered = 0
    for entry in result.scalars().all():
        if covered >= points:
            break
        claimed = await db.execute(
            update(RewardPointEntry)
            .where(
                RewardPointEntry.id == entry.id,
                RewardPointEntry.is_used.is_(False),
            )
            .values(is_used=True, order_id=order_id)
        )
        if claimed.rowcount == 0:
            continue
        covered += entry.points
        consumed.append(entry)

    if covered < points:
        logger.warning(
            "Redemption of %d points for user %s only covered %d",
            points,
            user_id,
            covered,
        )
        raise InsufficientRewardPoints(points, covered)

    db.add(
        RewardPointEntry(
            user_id=user_id,
            order_id=order_id,
            points=-points,
            earned_date=now,
            expiry_date=now,
            is_used=True,
        )
    )
    await db.flush()
    logger.info(
        "User %s redeemed %d points on order %s (%d entries consumed)",
        user_id,
        points,
        order_id,
        len(consumed),
    )
    return consumed


async def get_history(db: AsyncSession, user_id: int) -> list[RewardPointEntry]:
    result = await db.execute(
        select(RewardPointEntry)
        .where(RewardPointEntry.user_id == user_id)
        .order_by(RewardPointEntry.earned_date.desc(), RewardPointEntry.id.desc())
        .limit(HISTORY_LIMIT)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Post-commit boundary
# ---------------------------------------------------------------------------


async def apply_post_commit_rewards(db: AsyncSession, *, order_id: int) -> bool:
    """Record earned points for a committed order.

    Guest orders earn nothing. Errors are logged and rolled back, never raised;
    the order and its redemption were committed earlier and stay as they are.
    """
    try:
        order = await db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
        )
        if order is None:
            logger.warning("Reward points skipped: order %s not found", order_id)
            return False

        user = await db.get(User, order.user_id)
        if user is None or user.is_guest:
            return False

        await record_earned_points(
            db,
            order_id=order.id,
            user_id=user.id,
            total_amount=order.total_amount,
            items=order.items,
        )
        await db.commit()
        return True
    except Exception:
        logger.exception("Reward points processing failed for order %s", order_id)
        await db.rollback()
        return False


async def dispatch_order_rewards(db: AsyncSession, *, order_id: int) -> None:
    """Run reward earning inline or hand it to the arq worker."""
    settings = get_settings()
    if settings.REWARD_POINTS_DISPATCH == "queue":
        try:
            await enqueue("task_apply_order_rewards", order_id)
            logger.info("Queued reward points for order %s", order_id)
        except Exception:
            logger.exception("Could not queue reward points for order %s", order_id)
        return

    await apply_post_commit_rewards(db, order_id=order_id)
