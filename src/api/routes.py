"""
API routes - Registration, confirmation and login endpoints.

This module defines the HTTP endpoints:
- POST /register          - Create an inactive account and email a confirmation link
- GET  /register/confirm  - Activate the account behind a confirmation token
- POST /register/resend   - Email a fresh confirmation link
- POST /login             - Start a session for an active account
- POST /logout            - End the session

Routes are plain functions so FastAPI runs them in its thread pool; the
services they call block on Postgres, Redis and SMTP.
Failure bodies are generic. The cause is logged, never rendered.
"""

import logging
from html import escape

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import HTMLResponse
from pydantic import EmailStr

from src.api.dependencies import (
    get_confirmation_service,
    get_login_service,
    get_registration_service,
)
from src.domain.confirmation import ConfirmationService
from src.domain.exceptions import (
    AccountNotActivated,
    ActivationPersistError,
    EmailAlreadyRegistered,
    InvalidCredentials,
    RegistrationError,
    TokenError,
)
from src.domain.login import LoginService
from src.domain.ports import NewUser
from src.domain.registration import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])

UNAVAILABLE_MESSAGE = "Unable to complete your request at this time. Please try again later."


def page(title: str, message: str, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
    """Minimal HTML page with a heading and one paragraph."""
    body = f"<h1>{escape(title)}</h1> <p>{escape(message)}</p>"
    return HTMLResponse(content=body, status_code=status_code)


@router.post(
    "/register",
    response_class=HTMLResponse,
    responses={
        409: {"description": "Email already registered"},
        422: {"description": "Validation error"},
        500: {"description": "Account, token or email could not be created"},
    },
    summary="Register a new user",
)
def register(
    email: EmailStr = Form(...),
    password: str = Form(..., min_length=8),
    first_name: str = Form(..., min_length=1, max_length=100),
    last_name: str = Form(..., min_length=1, max_length=100),
    service: RegistrationService = Depends(get_registration_service),
) -> HTMLResponse:
    """Create an inactive account and send the confirmation email."""
    new_user = NewUser(email=email, password=password, first_name=first_name, last_name=last_name)
    try:
        service.register(new_user)
    except EmailAlreadyRegistered:
        return page("Registration failed", "Registration failed", status.HTTP_409_CONFLICT)
    except RegistrationError as e:
        logger.error("Registration failed: %s: %s", type(e).__name__, e)
        return page("Internal Server Error", UNAVAILABLE_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return page("Registration successful", "Please check your email to verify your account")


@router.get(
    "/register/confirm",
    response_class=HTMLResponse,
    responses={
        400: {"description": "Token invalid, expired or already used"},
        500: {"description": "Token store or user store unavailable"},
    },
    summary="Confirm an email address",
)
def confirm(
    token: str = Query(...),
    service: ConfirmationService = Depends(get_confirmation_service),
) -> HTMLResponse:
    """Consume the confirmation token and activate its account."""
    try:
        service.complete_confirmation(token)
    except TokenError:
        return page(
            "Confirmation failed",
            "This confirmation link is invalid or has expired. Please request a new one.",
            status.HTTP_400_BAD_REQUEST,
        )
    except ActivationPersistError:
        return page(
            "Internal Server Error",
            "Unable to activate your account at this time. Please request a new confirmation email.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    except RegistrationError as e:
        logger.error("Confirmation failed: %s: %s", type(e).__name__, e)
        return page(
            "Internal Server Error",
            "Unable to activate your account at this time. Please try again later.",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return page("Account activated", "Your account is active. You can now log in.")


@router.post(
    "/register/resend",
    response_class=HTMLResponse,
    responses={500: {"description": "Token or email could not be created"}},
    summary="Resend the confirmation email",
)
def resend(
    email: EmailStr = Form(...),
    service: RegistrationService = Depends(get_registration_service),
) -> HTMLResponse:
    """Send a fresh confirmation link; earlier links stop working."""
    try:
        service.resend_confirmation(email)
    except RegistrationError as e:
        logger.error("Resend failed: %s: %s", type(e).__name__, e)
        return page("Internal Server Error", UNAVAILABLE_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    # Same response whether or not the account exists
    return page(
        "Check your email",
        "If an account is waiting for confirmation, a new link is on its way.",
    )


@router.post(
    "/login",
    response_class=HTMLResponse,
    responses={
        401: {"description": "Invalid email or password"},
        403: {"description": "Email not confirmed yet"},
    },
    summary="Log in",
)
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    service: LoginService = Depends(get_login_service),
) -> HTMLResponse:
    """Check credentials and store the user id in the session cookie."""
    try:
        user = service.authenticate(email, password)
    except InvalidCredentials:
        return page("Login failed", "Invalid email or password", status.HTTP_401_UNAUTHORIZED)
    except AccountNotActivated:
        return page(
            "Login failed",
            "Please confirm your email address before logging in.",
            status.HTTP_403_FORBIDDEN,
        )
    except RegistrationError as e:
        logger.error("Login failed: %s: %s", type(e).__name__, e)
        return page("Internal Server Error", UNAVAILABLE_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)

    request.session["user_id"] = user.id
    return page("Welcome", f"Logged in as {user.first_name} {user.last_name}")


@router.post("/logout", response_class=HTMLResponse, summary="Log out")
def logout(request: Request) -> HTMLResponse:
    """Clear the session cookie."""
    request.session.clear()
    return page("Logged out", "See you soon")
