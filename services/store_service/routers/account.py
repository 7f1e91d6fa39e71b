"""Store account router: saved addresses and reward points."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.schemas import (
    AddressCreate,
    AddressResponse,
    RewardPointEntryResponse,
    RewardPointsSummary,
)
from services.store_service.services.addresses import create_address, list_addresses
from services.store_service.services.reward_points import (
    get_available_points,
    get_history,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/account", tags=["store-account"])


@router.get("/addresses", response_model=list[AddressResponse])
async def my_addresses(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the caller's saved addresses (guest checkout addresses excluded)."""
    return await list_addresses(db, user_id=current_user.user_id)


@router.post(
    "/addresses", response_model=AddressResponse, status_code=status.HTTP_201_CREATED
)
async def add_address(
    address_in: AddressCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await create_address(db, user_id=current_user.user_id, data=address_in)


@router.get("/reward-points", response_model=RewardPointsSummary)
async def my_reward_points(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Available balance plus the latest ledger entries, newest first."""
    available = await get_available_points(db, current_user.user_id)
    history = await get_history(db, current_user.user_id)
    return RewardPointsSummary(
        available_points=available,
        history=[RewardPointEntryResponse.model_validate(e) for e in history],
    )
