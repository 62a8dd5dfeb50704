# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api.errors import register_error_handlers
from storefront.api.routers import admin, carts, health, orders, products, wishlist
from storefront.data.database import init_db
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database")
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Funnel Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # Include routers
    app.include_router(health.router)
    app.include_router(wishlist.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(products.router)
    app.include_router(admin.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
