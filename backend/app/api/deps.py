import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer

from app.core.config import settings
from app.core.credential_store import CredentialRecord, CredentialStore, get_credential_store
from app.core.security import get_username_from_token, validate_token
from app.services.auth_service import AuthService
from app.services.employee_client import get_employee_client
from app.services.employee_service import EmployeeService

logger = logging.getLogger("employee_api.deps")

ADMIN_KEY_HEADER = "Global-Token"

# Missing or non-Bearer Authorization headers yield None instead of an automatic error
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)
admin_key_scheme = APIKeyHeader(name=ADMIN_KEY_HEADER, auto_error=False)


def get_store() -> CredentialStore:
    return get_credential_store()


def get_auth_service(store: CredentialStore = Depends(get_store)) -> AuthService:
    return AuthService(store)


def get_employee_service() -> EmployeeService:
    return EmployeeService(get_employee_client())


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    store: CredentialStore = Depends(get_store),
) -> CredentialRecord:
    """
    Resolve the authenticated user from the bearer token.

    The token must verify (signature and expiry) and its subject must match a
    stored, enabled account. On success the username is attached to
    ``request.state.user``.

    Raises:
        HTTPException: 401 if the token is absent, invalid or names no usable account
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    username = get_username_from_token(token)
    if not username:
        logger.info("Rejected bearer token")
        raise credentials_exception

    record = await store.get(username)
    if record is None or record.disabled or not validate_token(token, record.username):
        logger.info(f"Token subject '{username}' has no usable account")
        raise credentials_exception

    request.state.user = record.username
    return record


async def require_admin_key(api_key: Optional[str] = Depends(admin_key_scheme)) -> None:
    """Reject the request with 403 unless it carries the configured admin key."""
    if not api_key or not secrets.compare_digest(
        api_key.encode("utf-8"), settings.ADMIN_API_KEY.encode("utf-8")
    ):
        logger.warning("Registration attempt with missing or invalid admin key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Valid API key required.",
        )
