"""
FastAPI Application Entry Point.

This is the main application file for the Parcel Delivery Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.identity import JWTAuthenticator
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import close_redis, ping_redis
from backend.app.db.session import build_database
from backend.app.domain.payments.gateway import build_gateway
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    storage_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.audit_log import AuditLog
from backend.app.models.rider import Rider
from backend.app.models.parcel import Parcel
from backend.app.models.cashout import Cashout  # before earnings for FK
from backend.app.models.earning import Earning
from backend.app.models.payment import Payment
from backend.app.models.tracking_log import TrackingLog

logger = logging.getLogger("parcel_delivery")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Builds the database, creates tables and wires the identity verifier
       and payment gateway onto app.state.
    2. Closes the gateway, database pool and Redis on shutdown.
    """
    configure_logging(settings.log_level)

    database = build_database(settings)
    await database.create_all()

    app.state.database = database
    app.state.authenticator = JWTAuthenticator(settings.identity_secret_key, settings.identity_algorithm)
    app.state.payment_gateway = build_gateway(settings)

    if not await ping_redis():
        logger.warning("Redis unreachable at startup; token revocation checks will fail open")

    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield

    await app.state.payment_gateway.close()
    await database.dispose()
    await close_redis()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel booking, rider delivery workflow, earnings and cash-out",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Parcel Delivery Backend is running",
        "docs": "/docs",
        "health": "/health",
    }
