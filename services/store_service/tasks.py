"""Background tasks for the store service."""

from libs.common.logging import get_logger
from libs.db.session import session_scope
from services.store_service.services.reward_points import apply_post_commit_rewards

logger = get_logger(__name__)


async def apply_order_rewards(order_id: int) -> bool:
    """Award earned points for a committed order in a fresh session."""
    async with session_scope() as db:
        applied = await apply_post_commit_rewards(db, order_id=order_id)
    logger.info("Reward points for order %s applied=%s", order_id, applied)
    return applied
