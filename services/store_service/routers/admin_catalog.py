"""Admin store catalog router: category management."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.errors import CategoryConflict, CategoryNotFound
from services.store_service.models import Category, Product
from services.store_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])
logger = get_logger(__name__)


async def _get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise CategoryNotFound(category_id)
    return category


async def _ensure_unique_slug(db: AsyncSession, slug: str, exclude_id: int = None):
    query = select(Category.id).where(Category.slug == slug)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if await db.scalar(query) is not None:
        raise CategoryConflict(
            "Category with this slug already exists", {"slug": slug}
        )


async def _ensure_parent(db: AsyncSession, parent_id, category_id: int = None):
    if parent_id is None:
        return
    if parent_id == category_id:
        raise CategoryConflict(
            "A category cannot be its own parent", {"parentId": parent_id}
        )
    await _get_category(db, parent_id)
    if category_id is None:
        return

    # Walk up from the new parent; meeting the category itself means a cycle
    seen = set()
    ancestor_id = parent_id
    while ancestor_id is not None and ancestor_id not in seen:
        if ancestor_id == category_id:
            raise CategoryConflict(
                "A category cannot be nested under its own descendant",
                {"parentId": parent_id},
            )
        seen.add(ancestor_id)
        ancestor_id = await db.scalar(
            select(Category.parent_id).where(Category.id == ancestor_id)
        )


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_all_categories(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all categories (including inactive)."""
    query = select(Category).order_by(Category.sort_order, Category.name)
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/categories/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_category(db, category_id)


@router.post(
    "/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(
    category_in: CategoryCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a new category."""
    await _ensure_unique_slug(db, category_in.slug)
    await _ensure_parent(db, category_in.parent_id)

    category = Category(**category_in.model_dump())
    db.add(category)
    await db.commit()
    await db.refresh(category)

    logger.info("Category %s created by %s", category.slug, current_user.user_id)
    return category


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_in: CategoryUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a category."""
    category = await _get_category(db, category_id)

    update_data = category_in.model_dump(exclude_unset=True)
    if "slug" in update_data:
        await _ensure_unique_slug(db, update_data["slug"], exclude_id=category.id)
    if "parent_id" in update_data:
        await _ensure_parent(db, update_data["parent_id"], category_id=category.id)

    for field, value in update_data.items():
        setattr(category, field, value)

    await db.commit()
    await db.refresh(category)

    logger.info(
        "Category %s updated by %s: %s",
        category.id,
        current_user.user_id,
        sorted(update_data),
    )
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a category that no product uses."""
    category = await _get_category(db, category_id)

    linked = await db.scalar(
        select(func.count())
        .select_from(Product)
        .where(Product.category_id == category.id)
    )
    if linked:
        raise CategoryConflict(
            "Category is linked to products and cannot be deleted",
            {"categoryId": category.id, "products": linked},
        )

    await db.delete(category)
    await db.commit()
    logger.info("Category %s deleted by %s", category_id, current_user.user_id)
