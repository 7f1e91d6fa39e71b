"""ARQ worker for store reward points bookkeeping."""

from libs.common.arq_config import STORE_QUEUE_NAME, get_redis_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def task_apply_order_rewards(ctx: dict, order_id: int):
    from services.store_service.tasks import apply_order_rewards

    logger.info("Running: apply_order_rewards for order %s", order_id)
    return await apply_order_rewards(order_id)


class WorkerSettings:
    redis_settings = get_redis_settings()
    queue_name = STORE_QUEUE_NAME

    functions = [
        task_apply_order_rewards,
    ]
