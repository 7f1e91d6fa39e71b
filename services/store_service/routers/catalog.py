"""Store catalog router: categories, products, shipping methods, currencies."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.db.session import get_async_db
from services.store_service.errors import ProductNotFound, VariationNotFound
from services.store_service.models import (
    Category,
    Currency,
    Product,
    ShippingMethod,
    VariationCombination,
)
from services.store_service.schemas import (
    CategoryResponse,
    CurrencyResponse,
    ProductDetail,
    ProductListResponse,
    ProductResponse,
    RewardPointsEstimate,
    ShippingMethodResponse,
)
from services.store_service.services.reward_points import estimate_points
from sqlalchemy import exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


# ============================================================================
# CATALOG - CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    db: AsyncSession = Depends(get_async_db),
):
    """List all active categories."""
    query = (
        select(Category)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.name)
    )
    result = await db.execute(query)
    return result.scalars().all()


# ============================================================================
# CATALOG - PRODUCTS
# ============================================================================


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category_slug: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: Optional[bool] = None,
    featured: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """Browse products with filtering and pagination."""
    query = select(Product).where(Product.is_active.is_(True))

    # Category filter
    if category_slug:
        query = query.join(Category).where(Category.slug == category_slug)

    # Search filter
    if search:
        search_term = f"%{search}%"
        query = query.where(
            Product.name.ilike(search_term) | Product.description.ilike(search_term)
        )

    # Price filter (offer price wins when set)
    price = func.coalesce(Product.offer_price, Product.base_price)
    if min_price is not None:
        query = query.where(price >= min_price)
    if max_price is not None:
        query = query.where(price <= max_price)

    # Stock filter: base stock or any combination in stock
    if in_stock is not None:
        has_stock = or_(
            Product.stock_quantity > 0,
            exists().where(
                VariationCombination.product_id == Product.id,
                VariationCombination.stock_quantity > 0,
            ),
        )
        query = query.where(has_stock if in_stock else ~has_stock)

    # Featured filter
    if featured is not None:
        query = query.where(Product.is_featured == featured)

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Pagination
    query = query.order_by(Product.is_featured.desc(), Product.name)
    query = query.offset((page - 1) * page_size).limit(page_size)

    result = await db.execute(query)
    products = result.scalars().all()

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )


@router.get("/products/{product_id}", response_model=ProductDetail)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_async_db),
):
    """Get product detail with its variation combinations."""
    query = (
        select(Product)
        .where(Product.id == product_id, Product.is_active.is_(True))
        .options(selectinload(Product.variation_combinations))
    )
    result = await db.execute(query)
    product = result.scalar_one_or_none()

    if not product:
        raise ProductNotFound(product_id)
    return product


@router.get(
    "/products/{product_id}/reward-points", response_model=RewardPointsEstimate
)
async def estimate_product_reward_points(
    product_id: int,
    quantity: int = Query(1, ge=1, le=1000),
    variation_id: Optional[int] = Query(None, alias="variationId"),
    db: AsyncSession = Depends(get_async_db),
):
    """Estimate the reward points buying this product would earn."""
    query = (
        select(Product)
        .where(Product.id == product_id, Product.is_active.is_(True))
        .options(selectinload(Product.variation_combinations))
    )
    product = (await db.execute(query)).scalar_one_or_none()
    if not product:
        raise ProductNotFound(product_id)

    unit_price = product.effective_price
    if variation_id:
        combination = next(
            (c for c in product.variation_combinations if c.id == variation_id),
            None,
        )
        if combination is None:
            raise VariationNotFound(product_id, variation_id)
        unit_price = combination.effective_price

    estimate = await estimate_points(
        db, product_id=product.id, quantity=quantity, unit_price=unit_price
    )
    return RewardPointsEstimate.model_validate(estimate)


# ============================================================================
# CHECKOUT REFERENCE DATA
# ============================================================================


@router.get("/shipping-methods", response_model=list[ShippingMethodResponse])
async def list_shipping_methods(
    db: AsyncSession = Depends(get_async_db),
):
    """List active shipping methods, cheapest first."""
    query = (
        select(ShippingMethod)
        .where(ShippingMethod.is_active.is_(True))
        .order_by(ShippingMethod.base_cost, ShippingMethod.id)
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/currencies", response_model=list[CurrencyResponse])
async def list_currencies(
    db: AsyncSession = Depends(get_async_db),
):
    """List currencies with their rate against the settlement currency."""
    result = await db.execute(select(Currency).order_by(Currency.code))
    return result.scalars().all()
