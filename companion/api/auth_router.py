"""Authentication endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from companion.core.config import settings
from companion.core.limiter import limiter
from companion.dependencies import (
    CurrentUser,
    get_auth_service,
    get_current_user,
)
from companion.schemas.auth_schema import (
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    SessionResponse,
    SessionUser,
    TokenPayload,
    TokenResponse,
)
from companion.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def _set_session_cookie(response: Response, tokens: TokenResponse) -> None:
    """Mirror the access token into an HttpOnly cookie for browser clients."""
    response.set_cookie(
        key=settings.auth.cookie_name,
        value=tokens.access_token,
        max_age=tokens.expires_in,
        httponly=True,
        secure=settings.app.is_production,
        samesite="lax",
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.auth.register_rate_limit)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth_service: AuthServiceDep,
) -> RegisterResponse:
    """Sign up with email and password."""
    result = await auth_service.register(body)
    _set_session_cookie(response, result.tokens)
    return result


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth.login_rate_limit)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    """Sign in and receive a session."""
    result = await auth_service.login(body)
    _set_session_cookie(response, result)
    return result


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    body: LogoutRequest,
    auth_service: AuthServiceDep,
    current_user: CurrentUserDep,
) -> MessageResponse:
    """Revoke the current session."""
    access_payload = TokenPayload(
        sub=current_user.id,
        email=current_user.email,
        type="access",
        jti=request.state.jti,
        exp=request.state.exp,
    )
    result = await auth_service.logout(access_payload, body)
    response.delete_cookie(settings.auth.cookie_name)
    return result


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    response: Response,
    body: RefreshRequest,
    auth_service: AuthServiceDep,
) -> TokenResponse:
    """Rotate the session tokens."""
    result = await auth_service.refresh(body)
    _set_session_cookie(response, result)
    return result


@router.get("/session", response_model=SessionResponse)
async def current_session(
    request: Request,
    current_user: CurrentUserDep,
) -> SessionResponse:
    """Return the identity behind the presented credential."""
    return SessionResponse(
        user=SessionUser(id=current_user.id, email=current_user.email),
        expires_at=request.state.exp,
    )
