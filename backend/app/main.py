"""
FastAPI Application Entry Point.

This is the main application file for the Household Ledger Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.api.v1.router import router as api_v1_router
from backend.app.db.session import engine, Base, AsyncSessionLocal
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from backend.app.core.redis_client import ping_redis
from backend.app.services.categories import CategoryService

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.audit_log import AuditLog
from backend.app.models.category import Category
from backend.app.models.expense import Expense
from backend.app.models.wallet import WalletBalance, WalletTransaction
from backend.app.models.reserve import ReserveBalance, ReserveTransaction

configure_logging()
logger = logging.getLogger("household_ledger.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Seeds the default categories into an empty database.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_default_categories:
        async with AsyncSessionLocal() as session:
            await CategoryService.seed_default_categories(session)

    logger.info("%s started (lock backend: %s)", settings.app_name, settings.ledger_lock_backend)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Household expense tracking with member wallets and a shared reserve",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Reports Redis reachability when ledger locks are distributed through it.

    Returns:
        dict: Status and application information
    """
    body = {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "lock_backend": settings.ledger_lock_backend,
    }
    if settings.ledger_lock_backend == "redis":
        redis_ok = await ping_redis()
        body["redis"] = "ok" if redis_ok else "unreachable"
        if not redis_ok:
            body["status"] = "degraded"
    return body


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
        "message": "Welcome to Household Ledger Backend API",
        "docs": "/docs",
        "health": "/health",
    }
