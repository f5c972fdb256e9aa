from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import jwt, JWTError

from app.core.config import settings


def create_access_token(subject: str | Any, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        subject: The subject of the token (the username)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token carrying ``sub``, ``iat`` and ``exp``
    """
    issued_at = datetime.now(timezone.utc)
    if expires_delta:
        expire = issued_at + expires_delta
    else:
        expire = issued_at + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"sub": str(subject), "iat": issued_at, "exp": expire}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode a token, verifying its signature and expiry.

    Raises:
        JWTError: If the token is malformed, tampered with or expired
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def get_username_from_token(token: str) -> Optional[str]:
    """Return the token subject, or None when the token does not verify."""
    try:
        payload = decode_access_token(token)
    except JWTError:
        return None
    return payload.get("sub")


def validate_token(token: str, username: str) -> bool:
    """
    Check that a token is correctly signed, unexpired and issued to ``username``.

    Args:
        token: Encoded JWT
        username: Identity the token must belong to

    Returns:
        True if the token is valid for this user, False otherwise
    """
    subject = get_username_from_token(token)
    return subject is not None and subject == username


def _prepare_password(password: str) -> bytes:
    """
    Prepare password for bcrypt by encoding and truncating to 72 bytes.

    Args:
        password: Plain text password

    Returns:
        Password bytes truncated to 72 bytes (bcrypt limit)
    """
    return password.encode('utf-8')[:72]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password
        hashed_password: The stored bcrypt hash

    Returns:
        True if password matches, False otherwise
    """
    return bcrypt.checkpw(
        _prepare_password(plain_password),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Salted bcrypt hash
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_prepare_password(password), salt)
    return hashed.decode('utf-8')
