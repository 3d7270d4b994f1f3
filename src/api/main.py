"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.gzip import GZipMiddleware
from psycopg_pool import ConnectionPool
from starlette.middleware.sessions import SessionMiddleware

from src.adapters.cache.memory import InMemoryInvalidationStore
from src.adapters.cache.redis_store import RedisInvalidationStore
from src.adapters.repository.postgres import run_migrations
from src.adapters.smtp.console import ConsoleNotificationGateway
from src.adapters.smtp.smtp import SmtpNotificationGateway, build_template_environment
from src.api.routes import router
from src.config.settings import Settings, get_settings
from src.domain.exceptions import CacheError
from src.domain.ports import InvalidationStore, NotificationGateway
from src.domain.tokens import TokenCodec

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "registration",
        "description": "Register, confirm by email, and log in",
    },
]


def build_token_codec(settings: Settings) -> TokenCodec:
    """Load the signing key pair, or generate a throwaway one for development."""
    if settings.token_private_key_file is None and settings.token_public_key_file is None:
        logger.warning(
            "No token key files configured; using an ephemeral key pair. "
            "Confirmation links will stop working after a restart."
        )
        return TokenCodec.generate()
    return TokenCodec.from_pem_files(settings.token_private_key_file, settings.token_public_key_file)


def build_invalidation_store(settings: Settings) -> InvalidationStore:
    """Create the single-use token store selected by INVALIDATION_BACKEND."""
    if settings.invalidation_backend == "memory":
        logger.warning("Using in-memory invalidation store; tokens are not shared between processes")
        return InMemoryInvalidationStore()
    return RedisInvalidationStore.from_url(settings.redis_url, settings.redis_socket_timeout_seconds)


def build_notification_gateway(settings: Settings) -> NotificationGateway:
    """Create the email gateway selected by EMAIL_BACKEND."""
    if settings.email_backend == "smtp":
        return SmtpNotificationGateway(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_sender,
            templates=build_template_environment(settings.public_base_url),
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    return ConsoleNotificationGateway()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations
    - Creates invalidation store, token codec and email gateway
    - Closes pool and store clients on shutdown
    """
    settings: Settings = app.state.settings

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.invalidation_store = build_invalidation_store(settings)
    app.state.token_codec = build_token_codec(settings)
    app.state.notification_gateway = build_notification_gateway(settings)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    if isinstance(app.state.invalidation_store, RedisInvalidationStore):
        app.state.invalidation_store.close()
    logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with middleware configured from settings."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    application = FastAPI(
        title="study-site",
        description="Registration with single-use email confirmation tokens",
        version=APP_VERSION,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    application.state.settings = settings

    if settings.debug:
        logger.warning("Debug mode: session cookie sent over plain HTTP")
    application.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        same_site="lax",
        https_only=not settings.debug,
    )
    application.add_middleware(GZipMiddleware, minimum_size=1000)

    @application.middleware("http")
    async def add_version_header(request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Version"] = APP_VERSION
        return response

    application.include_router(router)

    @application.get(
        "/health",
        responses={503: {"description": "Invalidation store unreachable"}},
    )
    def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with database and token store validation.

        Returns 200 OK if application, database and Redis are healthy.
        Returns 503 if Redis does not answer a PING.
        Raises exception if database connection fails.
        """
        pool = request.app.state.pool
        with pool.connection() as conn:
            conn.execute("SELECT 1")

        store = request.app.state.invalidation_store
        if isinstance(store, RedisInvalidationStore):
            try:
                store.ping()
            except CacheError as e:
                logger.error("Health check failed: %s", e)
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Invalidation store unreachable",
                ) from e

        return {"status": "healthy"}

    return application


app = create_app()
