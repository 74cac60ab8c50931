"""Process entrypoint: wires settings, clients and the HTTP app.

Run with `uvicorn orderpay.services.orders.main:app --port 8080`.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from orderpay.common.config import CommonSettings, settings
from orderpay.common.db import Base, make_engine, make_session_factory
from orderpay.common.logging import configure_logging, logger
from orderpay.common.startup import log_startup_config
from orderpay.common.tracing import enable_tracing
from orderpay.services.orders.api import create_app
from orderpay.services.orders.gateway import RazorpayGateway
from orderpay.services.orders.service import OrderService
from orderpay.services.orders.store import OrderStore


def build_service(config: CommonSettings) -> OrderService:
    """Construct the process-wide gateway client and store once."""

    engine = make_engine(config.database_url)
    if config.auto_create_schema:
        Base.metadata.create_all(engine)
    store = OrderStore(make_session_factory(engine))
    gateway = RazorpayGateway.from_settings(config)
    if not config.razorpay_key_secret:
        logger.warning("RAZORPAY_KEY_SECRET is empty; payment signatures cannot be trusted")
    return OrderService(store, gateway, config)


configure_logging()
log_startup_config(
    settings,
    ["database_url", "razorpay_key_id", "razorpay_key_secret", "razorpay_base_url", "default_currency", "gateway_timeout_seconds"],
)
service = build_service(settings)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Release the gateway HTTP client on shutdown."""

    logger.info("order service listening port=%s", settings.port)
    yield
    service.gateway.close()


app = create_app(service, settings, lifespan=lifespan)
enable_tracing(app, settings)
