from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from cart_api.api.cart.cart_routes import cart_router
from cart_api.api.health.health_routes import health_router
from cart_api.clients.auth_verifier import AuthVerifier
from cart_api.clients.product_catalog import ProductCatalogClient
from cart_api.config import Settings
from cart_api.correlation import attach_correlation_id
from cart_api.errors import CartError, UpstreamUnavailableError
from cart_api.log_setup import configure_logging
from cart_api.middleware.request_pipeline import RequestPipelineMiddleware
from cart_api.service.cart_service import CartService
from cart_api.store.cart_queries import CartStore
from cart_api.telemetry.broker import BrokerChannel
from cart_api.telemetry.publisher import TelemetryPublisher

logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    broker: BrokerChannel | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)

    http = httpx.AsyncClient(
        timeout=settings.http_timeout,
        transport=transport,
        event_hooks={"request": [attach_correlation_id]},
    )
    store = CartStore(settings.database_url)
    broker = broker or BrokerChannel(settings.rabbitmq_url, settings.rabbitmq_exchange)
    telemetry = TelemetryPublisher(http, settings.analytics_service_url, broker)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await run_in_threadpool(store.init_schema)
        await broker.connect()
        logger.info("cart service started")
        yield
        await broker.close()
        await http.aclose()
        store.dispose()
        logger.info("cart service stopped")

    app = FastAPI(
        title="Cart API",
        description="API for managing user carts.",
        version="1.0.0",
        openapi_url="/swagger.json",
        docs_url="/swagger",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cart_service = CartService(
        ProductCatalogClient(http, settings.product_service_url), store
    )
    app.state.auth_verifier = AuthVerifier(
        http, settings.auth_service_url, settings.auth_verify_path
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # added last so it is outermost and sees every response
    app.add_middleware(
        RequestPipelineMiddleware,
        telemetry=telemetry,
        service_name=settings.service_name,
    )

    app.add_exception_handler(CartError, _cart_error_handler)

    app.include_router(health_router)
    app.include_router(cart_router)
    return app


async def _cart_error_handler(request: Request, exc: CartError) -> JSONResponse:
    if isinstance(exc, UpstreamUnavailableError):
        logger.error("upstream unavailable", detail=exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings: Settings = app.state.settings
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
