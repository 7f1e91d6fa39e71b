"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.store_service.errors import StoreError
from services.store_service.routers import (
    account_router,
    admin_catalog_router,
    catalog_router,
    orders_router,
    payments_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="Storefront Service",
        version="0.1.0",
        description="Storefront back end - catalog, checkout, payments, reward points.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Domain errors render as {"error", "details"}
    add_exception_handlers(app, StoreError)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Public store routes (catalog, checkout, payments, account)
    app.include_router(catalog_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")
    app.include_router(payments_router, prefix="/store")
    app.include_router(account_router, prefix="/store")

    # Admin routes (category management)
    app.include_router(admin_catalog_router, prefix="/admin/store")

    return app


app = create_app()
