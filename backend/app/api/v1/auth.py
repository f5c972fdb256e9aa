from typing import Any

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_auth_service, require_admin_key
from app.core.rate_limiter import RateLimits, limiter
from app.schemas.token import LoginRequest, MessageResponse, TokenResponse, UserCreate
from app.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RateLimits.AUTH_LOGIN)
async def login(
    request: Request,
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Any:
    """
    Exchange a username and password for a bearer token.
    """
    return await auth_service.login(login_data.username, login_data.password)


@router.post(
    "/register",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin_key)],
)
@limiter.limit(RateLimits.AUTH_REGISTER)
async def register(
    request: Request,
    user_in: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
) -> Any:
    """
    Register a new user. Requires the admin key in the ``Global-Token`` header.
    """
    await auth_service.register(user_in.username, user_in.password)
    return MessageResponse(message="User registered successfully")
