import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import models  # noqa: F401  (registers every table on Base.metadata)
from app import routers
from app.core import error_handlers
from app.core.config import APP_ENV, ENABLE_SNAPSHOT_FLUSH
from app.core.db import init_models
from app.core.exceptions import AppException
from app.core.logging import setup_logging
from app.core.scheduler import scheduler
from app.middleware.request_logging import request_logging_middleware

APP_NAME = "Branch Logistics API"
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

setup_logging()
logger = logging.getLogger(__name__)

EXCEPTION_HANDLERS = (
    (AppException, error_handlers.app_exception_handler),
    (RequestValidationError, error_handlers.validation_exception_handler),
    (StarletteHTTPException, error_handlers.http_exception_handler),
    (IntegrityError, error_handlers.integrity_error_handler),
    (Exception, error_handlers.unhandled_exception_handler),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", APP_NAME, APP_ENV)

    if APP_ENV in {"development", "test"}:
        await init_models()
        logger.info("Tables created in place")

    if ENABLE_SNAPSHOT_FLUSH:
        scheduler.start()
        logger.info("Snapshot flush scheduled")

    yield

    if scheduler.running:
        scheduler.shutdown()
    logger.info("Stopped %s", APP_NAME)


def create_app() -> FastAPI:
    application = FastAPI(
        title=APP_NAME,
        description="Branch inventory, stock ledger and transfer requests",
        version=APP_VERSION,
        docs_url="/docs" if APP_ENV != "production" else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    for exc_class, handler in EXCEPTION_HANDLERS:
        application.add_exception_handler(exc_class, handler)

    application.middleware("http")(request_logging_middleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/", tags=["Health"])
    async def health_check():
        return {
            "status": "ok",
            "service": "branch-logistics-api",
            "environment": APP_ENV,
            "version": APP_VERSION,
        }

    for name in routers.__all__:
        application.include_router(getattr(routers, name))

    return application


app = create_app()
