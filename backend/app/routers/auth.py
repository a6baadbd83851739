"""Authentication endpoints: register, login, me, logout, identity changes, profile."""

import logging

from fastapi import APIRouter, Depends, Response, status

from .. import schemas
from ..deps import Settings, get_authenticator, get_current_identity, get_settings
from ..exceptions import AuthenticationError
from ..models import User
from ..services.auth_service import AuthIdentity, Authenticator, IdentityChangeService
from ..telemetry import clear_user_context, set_user_context


logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Bad Request"},
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        500: {"model": schemas.ErrorResponse, "description": "Internal Server Error"},
    }
)


def _set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    """Set the HTTP-only session cookie.

    Cookie:
    - name: settings.AUTH_COOKIE_NAME (auth-token)
    - httponly: True, samesite: strict, secure in production, domain from env
    - max_age: token lifetime (7 days by default)
    """
    cookie_kwargs = {
        "key": settings.AUTH_COOKIE_NAME,
        "value": token,
        "httponly": True,
        "samesite": "strict",
        "secure": settings.is_production,
        "max_age": settings.JWT_EXPIRES_MINUTES * 60,
        "path": "/",
    }

    # Only set domain if explicitly configured (None for most cases)
    if settings.COOKIE_DOMAIN:
        cookie_kwargs["domain"] = settings.COOKIE_DOMAIN

    response.set_cookie(**cookie_kwargs)


def _clear_auth_cookie(response: Response, settings: Settings) -> None:
    cookie_kwargs = {
        "key": settings.AUTH_COOKIE_NAME,
        "value": "",
        "max_age": 0,
        "httponly": True,
        "samesite": "strict",
        "secure": settings.is_production,
        "path": "/",
    }

    if settings.COOKIE_DOMAIN:
        cookie_kwargs["domain"] = settings.COOKIE_DOMAIN

    response.set_cookie(**cookie_kwargs)


def _load_user(authenticator: Authenticator, identity: AuthIdentity) -> User:
    user = authenticator.get_user(identity.user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("Not authenticated")
    return user


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new user account and log it in.

    - Email must look like `name@domain.tld`
    - Password must be at least 6 characters
    - Sets the `auth-token` session cookie
    """,
    responses={
        409: {
            "model": schemas.ErrorResponse,
            "description": "Email already registered",
            "content": {
                "application/json": {
                    "example": {"detail": "Email already exists"}
                }
            }
        }
    }
)
def register_user(
    payload: schemas.RegisterRequest,
    response: Response,
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
):
    """Register, then set the session cookie exactly like login does."""
    result = authenticator.register(payload.email, payload.password, payload.name)
    _set_auth_cookie(response, result.token, settings)

    set_user_context(user_id=str(result.user.id), email=result.user.email)
    return schemas.AuthResponse(user=schemas.UserOut.model_validate(result.user))


@router.post(
    "/login",
    response_model=schemas.AuthResponse,
    summary="Authenticate user",
    description="""
    Authenticate a user with email and password.

    On success sets an HTTP-only JWT cookie named `auth-token`, valid for
    7 days. Unknown email and wrong password produce the same 401.
    """,
    responses={
        401: {
            "model": schemas.ErrorResponse,
            "description": "Invalid credentials",
            "content": {
                "application/json": {
                    "example": {"detail": "Invalid credentials"}
                }
            }
        }
    }
)
def login_user(
    payload: schemas.LoginRequest,
    response: Response,
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
):
    result = authenticator.login(payload.email, payload.password)
    _set_auth_cookie(response, result.token, settings)

    set_user_context(user_id=str(result.user.id), email=result.user.email)
    return schemas.AuthResponse(user=schemas.UserOut.model_validate(result.user))


@router.get(
    "/me",
    response_model=schemas.UserOut,
    summary="Get current user",
    description="Return the user behind the `auth-token` cookie.",
)
def get_me(
    identity: AuthIdentity = Depends(get_current_identity),
    authenticator: Authenticator = Depends(get_authenticator),
):
    return _load_user(authenticator, identity)


@router.post(
    "/logout",
    response_model=schemas.SuccessResponse,
    summary="Logout user",
    description="""
    Clear the `auth-token` cookie.

    Does not require authentication (can be called even with an invalid token).
    """,
)
def logout_user(
    response: Response,
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
):
    authenticator.logout()
    clear_user_context()
    _clear_auth_cookie(response, settings)
    return schemas.SuccessResponse(detail="logged out")


@router.post(
    "/change-email",
    response_model=schemas.AuthResponse,
    summary="Change login email",
    description="""
    Change the account email after re-verifying the current email and password.

    The session cookie is re-issued so it carries the new email.
    """,
    responses={
        409: {"model": schemas.ErrorResponse, "description": "Email already in use"},
    }
)
def change_email(
    payload: schemas.ChangeEmailRequest,
    response: Response,
    identity: AuthIdentity = Depends(get_current_identity),
    authenticator: Authenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
):
    if payload.current_email != identity.email:
        raise AuthenticationError("Invalid credentials")

    user = IdentityChangeService(authenticator).change_email(
        payload.current_email, payload.new_email, payload.password
    )
    _set_auth_cookie(response, authenticator.issue_token(user), settings)
    return schemas.AuthResponse(user=schemas.UserOut.model_validate(user))


@router.post(
    "/change-password",
    response_model=schemas.SuccessResponse,
    summary="Change password",
    description="Change the password after re-verifying the current one.",
)
def change_password(
    payload: schemas.ChangePasswordRequest,
    identity: AuthIdentity = Depends(get_current_identity),
    authenticator: Authenticator = Depends(get_authenticator),
):
    if payload.email != identity.email:
        raise AuthenticationError("Invalid credentials")

    IdentityChangeService(authenticator).change_password(
        payload.email, payload.current_password, payload.new_password
    )
    return schemas.SuccessResponse(detail="Password updated successfully")


@router.get(
    "/user",
    response_model=schemas.UserOut,
    summary="Get profile settings",
)
def get_profile(
    identity: AuthIdentity = Depends(get_current_identity),
    authenticator: Authenticator = Depends(get_authenticator),
):
    return _load_user(authenticator, identity)


@router.put(
    "/user",
    response_model=schemas.UserOut,
    summary="Update profile settings",
    description="Update name and Google API settings. The API key is stored encrypted.",
)
def update_profile(
    payload: schemas.ProfileUpdate,
    identity: AuthIdentity = Depends(get_current_identity),
    authenticator: Authenticator = Depends(get_authenticator),
):
    return authenticator.update_profile(identity.user_id, payload.model_dump(exclude_unset=True))
