"""Cart line resolution and stock reservation.

Each cart line resolves once to a stock target: a variation combination that
tracks its own stock, or the product itself (no variation, or a
descriptive-only variation). Validation is a fail-fast pass over the lines in
the order received; the decrement later runs as a conditional UPDATE inside
the order transaction so concurrent checkouts cannot oversell a combination.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Union

from libs.common.logging import get_logger
from services.store_service.errors import (
    InsufficientStock,
    ProductNotFound,
    VariationNotFound,
)
from services.store_service.models import (
    Product,
    ProductRewardRule,
    VariationCombination,
)
from services.store_service.schemas import CartLine
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


@dataclass(frozen=True)
class VariationTracked:
    combination_id: int


@dataclass(frozen=True)
class ProductTracked:
    product_id: int


StockTarget = Union[VariationTracked, ProductTracked]


@dataclass
class ResolvedLine:
    line: CartLine
    product: Product
    target: StockTarget
    combination: Optional[VariationCombination] = None

    @property
    def quantity(self) -> int:
        return self.line.quantity

    @property
    def unit_price(self) -> Decimal:
        if self.combination is not None:
            return self.combination.effective_price
        return self.product.effective_price

    @property
    def variation_details(self) -> Optional[str]:
        if self.combination is not None:
            return self.combination.label or None
        return self.line.variation_label

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


async def load_products(
    db: AsyncSession, product_ids: Iterable[int]
) -> dict[int, Product]:
    """Batch-fetch active products with their combinations and reward rules."""
    ids = set(product_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Product)
        .where(Product.id.in_(ids), Product.is_active.is_(True))
        .options(
            selectinload(Product.variation_combinations),
            selectinload(Product.reward_rules).selectinload(
                ProductRewardRule.reward_rule
            ),
        )
    )
    return {product.id: product for product in result.scalars().all()}


def resolve_target(
    product: Product, line: CartLine
) -> tuple[StockTarget, Optional[VariationCombination]]:
    variation_id = line.variation_id
    if variation_id is not None and variation_id > 0:
        combination = next(
            (c for c in product.variation_combinations if c.id == variation_id),
            None,
        )
        if combination is None:
            raise VariationNotFound(product.id, variation_id)
        return VariationTracked(combination.id), combination
    return ProductTracked(product.id), None


def resolve_stock_targets(
    products: dict[int, Product], lines: Iterable[CartLine]
) -> list[ResolvedLine]:
    """Resolve and check every line; the first failing line raises."""
    resolved: list[ResolvedLine] = []
    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            raise ProductNotFound(line.product_id)

        target, combination = resolve_target(product, line)
        available = (
            combination.stock_quantity
            if combination is not None
            else product.stock_quantity
        )
        if available < line.quantity:
            name = product.name
            if combination is not None and combination.label:
                name = f"{product.name} ({combination.label})"
            raise InsufficientStock(name, available, line.quantity)

        resolved.append(
            ResolvedLine(
                line=line, product=product, target=target, combination=combination
            )
        )
    return resolved


async def reserve_stock(db: AsyncSession, lines: Iterable[ResolvedLine]) -> None:
    """Decrement stock for variation-tracked lines.

    Each decrement only applies while enough stock remains; a zero rowcount
    means another checkout got there first and raises ``InsufficientStock``.
    Product-tracked lines are not decremented.
    """
    for resolved in lines:
        if not isinstance(resolved.target, VariationTracked):
            continue

        combination_id = resolved.target.combination_id
        result = await db.execute(
            update(VariationCombination)
            .where(
                VariationCombination.id == combination_id,
                VariationCombination.stock_quantity >= resolved.quantity,
            )
            .values(
                stock_quantity=VariationCombination.stock_quantity - resolved.quantity
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await db.scalar(
                select(VariationCombination.stock_quantity).where(
                    VariationCombination.id == combination_id
                )
            )
            logger.warning(
                "Stock reservation lost for combination %s (wanted %d, have %s)",
                combination_id,
                resolved.quantity,
                current,
            )
            raise InsufficientStock(
                resolved.product.name, current or 0, resolved.quantity
            )

        # Loaded copy is stale now; reload on next access
        if resolved.combination is not None:
            db.expire(resolved.combination, ["stock_quantity"])
