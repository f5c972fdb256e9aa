"""
Authentication and registration for gateway users.

Credentials live in the configured CredentialStore; tokens are stateless
JWTs issued by app.core.security and never stored.
"""

import logging
from datetime import timedelta
from typing import Optional

from app.core.config import settings
from app.core.credential_store import CredentialRecord, CredentialStore, get_credential_store
from app.core.exceptions import AuthenticationError, UserAlreadyExistsError
from app.core.security import create_access_token, get_password_hash, verify_password
from app.schemas.token import TokenResponse

logger = logging.getLogger("employee_api.auth")


class AuthenticationManager:
    """Checks a username/password pair against the credential store."""

    def __init__(self, store: CredentialStore):
        self.store = store

    async def authenticate(self, username: str, password: str) -> CredentialRecord:
        """
        Return the matching credential record.

        Raises:
            AuthenticationError: INVALID_CREDENTIALS for an unknown user or a
                wrong password, USER_DISABLED for a disabled account
        """
        record = await self.store.get(username)
        if record is None or not verify_password(password, record.hashed_password):
            raise AuthenticationError(AuthenticationError.INVALID_CREDENTIALS)
        if record.disabled:
            raise AuthenticationError(AuthenticationError.USER_DISABLED)
        return record


class AuthService:

    def __init__(self, store: Optional[CredentialStore] = None):
        self.store = store or get_credential_store()
        self.manager = AuthenticationManager(self.store)

    async def login(self, username: str, password: str) -> TokenResponse:
        try:
            record = await self.manager.authenticate(username, password)
        except AuthenticationError as e:
            logger.warning(f"Login failed for user '{username}': {e.reason}")
            raise

        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token = create_access_token(subject=record.username, expires_delta=expires_delta)
        logger.info(f"User '{record.username}' logged in")
        return TokenResponse(
            token=token,
            token_type="bearer",
            expires_in=int(expires_delta.total_seconds()),
        )

    async def register(self, username: str, password: str) -> CredentialRecord:
        """
        Store a new user with a bcrypt-hashed password.

        Raises:
            UserAlreadyExistsError: the exact username is already registered
        """
        if await self.store.exists(username):
            raise UserAlreadyExistsError(username)

        record = CredentialRecord(username=username, hashed_password=get_password_hash(password))
        # Two concurrent registrations can both pass the check above; only one insert wins
        if not await self.store.add(record):
            raise UserAlreadyExistsError(username)

        logger.info(f"Registered user '{username}'")
        return record
