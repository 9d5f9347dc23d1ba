# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from storefront.api.routers import addresses, cart, health, orders, products, store
from storefront.data.database import Base, engine
from storefront.data.seed import seed
from storefront.domain.errors import DownstreamFailure, StorefrontError
from storefront.services.live_registry import SubscriberRegistry
from storefront.services.notification_service import shutdown_webhook_executor
from storefront.utils.settings import LIVE_EVENTS_ENABLED
from storefront.utils.logging import get_logger

# register every model in Base.metadata before create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initialising database, tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)
    seed()

    app.state.subscribers = SubscriberRegistry() if LIVE_EVENTS_ENABLED else None
    try:
        yield
    finally:
        if app.state.subscribers is not None:
            app.state.subscribers.close()
        app.state.subscribers = None
        shutdown_webhook_executor()


async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.reason}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"{request.method} {request.url.path}: store failure")
    error = DownstreamFailure("Data store unavailable, the operation did not complete")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    app.include_router(health.router)
    app.include_router(store.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(addresses.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
