"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures the lifespan that owns the connection pool and adapters.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryChallengeStore
from src.adapters.repository.postgres import (
    PostgresAccountRepository,
    PostgresChallengeStore,
    run_migrations,
)
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.mailer import SmtpEmailSender
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings
from src.domain.ports import ChallengeStore, EmailSender

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Email-verified signup API v1 - Verify an email, create and sign in to accounts",
    },
]


def build_email_sender(settings: Settings) -> EmailSender:
    """Select the email sender adapter from EMAIL_BACKEND."""
    if settings.email_backend == "smtp":
        from_address = settings.email_from or settings.smtp_user
        if not from_address:
            raise RuntimeError("SMTP configuration missing: set EMAIL_FROM or SMTP_USER")
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            from_address=from_address,
            from_name=settings.email_from_name,
            ttl_seconds=settings.otp_ttl_seconds,
        )
    return ConsoleEmailSender()


def build_challenge_store(settings: Settings, pool: ConnectionPool) -> ChallengeStore:
    """Select the challenge store adapter from CHALLENGE_BACKEND."""
    if settings.challenge_backend == "memory":
        # Process-local: only correct with a single worker
        return InMemoryChallengeStore()
    return PostgresChallengeStore(pool)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Wires the account repository, challenge store and email sender
    - Closes connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store adapters in app state for dependency injection
    app.state.pool = pool
    app.state.accounts = PostgresAccountRepository(pool)
    app.state.challenges = build_challenge_store(settings, pool)
    app.state.email_sender = build_email_sender(settings)

    logger.info(
        "Application startup complete (challenges=%s, email=%s)",
        settings.challenge_backend,
        settings.email_backend,
    )

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="otpgate",
    description="Email-verified signup API - One-time code verification, account creation and sign-in",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
