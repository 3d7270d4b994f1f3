"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services
and infrastructure adapters into routes. Pools, clients and keys are
created once in the application lifespan and kept on app.state; services
are cheap and built per request around them.
"""

from fastapi import Depends, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUserRepository
from src.config.settings import Settings
from src.domain.confirmation import ConfirmationService
from src.domain.login import LoginService
from src.domain.ports import InvalidationStore, NotificationGateway
from src.domain.registration import RegistrationService
from src.domain.tokens import TokenCodec


def get_app_settings(request: Request) -> Settings:
    """
    Get the settings the application was created with.

    create_app() stores them on app.state so services and the lifespan
    share one configuration.
    """
    return request.app.state.settings


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_user_repository(request: Request) -> PostgresUserRepository:
    """Create repository with connection pool from app state."""
    return PostgresUserRepository(get_pool(request))


def get_invalidation_store(request: Request) -> InvalidationStore:
    """Get the invalidation store created at startup."""
    return request.app.state.invalidation_store


def get_token_codec(request: Request) -> TokenCodec:
    """Get the token codec holding the service key pair."""
    return request.app.state.token_codec


def get_notification_gateway(request: Request) -> NotificationGateway:
    """Get the email gateway created at startup."""
    return request.app.state.notification_gateway


def get_confirmation_service(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> ConfirmationService:
    """Wire codec, invalidation store and user repository together."""
    return ConfirmationService(
        codec=get_token_codec(request),
        store=get_invalidation_store(request),
        users=get_user_repository(request),
        ttl_seconds=settings.token_ttl_seconds,
        grace_seconds=settings.invalidation_grace_seconds,
    )


def get_registration_service(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    confirmation: ConfirmationService = Depends(get_confirmation_service),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the repository, confirmation protocol and email gateway.
    """
    return RegistrationService(
        users=get_user_repository(request),
        confirmation=confirmation,
        notifications=get_notification_gateway(request),
        subject_line=settings.confirmation_subject,
        notification_policy=settings.notification_policy,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_login_service(request: Request) -> LoginService:
    """Create login service around the user repository."""
    return LoginService(users=get_user_repository(request))
