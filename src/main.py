"""FastAPI application entry point for the relief fraud engine."""

import contextlib
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import build_engine, set_engine
from src.api.middleware.error_handler import global_exception_handler
from src.api.middleware.logging import StructuredLoggingMiddleware
from src.api.routes.fraud import router as fraud_router
from src.api.routes.health import router as health_router
from src.api.routes.reports import router as reports_router
from src.api.routes.reviews import router as reviews_router
from src.config import settings
from src.domains.fraud.errors import FraudEngineError
from src.domains.fraud.events import KafkaEventPublisher
from src.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "relief_fraud_engine_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    if settings.database_enabled:
        from src.db.database import init_db

        await init_db()

    producer = None
    publisher = None
    if settings.kafka_enabled:
        try:
            from src.shared.kafka_utils import create_producer

            producer = await create_producer(settings.kafka_bootstrap_servers)
            publisher = KafkaEventPublisher(producer)
            logger.info("kafka_producer_started", servers=settings.kafka_bootstrap_servers)
        except Exception:
            logger.warning("kafka_producer_failed_to_start", exc_info=True)

    set_engine(build_engine(settings, publisher=publisher))

    yield

    if producer is not None:
        with contextlib.suppress(Exception):
            await producer.stop()
    set_engine(None)
    logger.info("relief_fraud_engine_shutting_down")


app = FastAPI(
    title="Relief Fraud Engine",
    description="Fraud risk scoring and case management for relief fund distribution",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Domain errors are mapped to 4xx responses; everything else falls through to 500
for error_class in (FraudEngineError, ValueError, PermissionError, LookupError):
    app.add_exception_handler(error_class, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Register routers
app.include_router(health_router)
app.include_router(fraud_router)
app.include_router(reports_router)
app.include_router(reviews_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
