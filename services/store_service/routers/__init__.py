"""Store service routers package."""

from services.store_service.routers.account import router as account_router
from services.store_service.routers.admin_catalog import router as admin_catalog_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.payments import router as payments_router

__all__ = [
    "account_router",
    "admin_catalog_router",
    "catalog_router",
    "orders_router",
    "payments_router",
]
