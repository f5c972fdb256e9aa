from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _require_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValueError(message)
    return value


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int


class LoginRequest(BaseModel):
    username: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("username")
    @classmethod
    def _username_not_blank(cls, value: Optional[str]) -> str:
        return _require_text(value, "Username cannot be blank")

    @field_validator("password")
    @classmethod
    def _password_not_blank(cls, value: Optional[str]) -> str:
        return _require_text(value, "Password cannot be blank")


class UserCreate(BaseModel):
    """Registration payload."""

    username: Optional[str] = Field(default=None, validate_default=True)
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("username")
    @classmethod
    def _username_rules(cls, value: Optional[str]) -> str:
        value = _require_text(value, "Username cannot be blank")
        if not 3 <= len(value) <= 50:
            raise ValueError("Username must be between 3 and 50 characters")
        return value

    @field_validator("password")
    @classmethod
    def _password_rules(cls, value: Optional[str]) -> str:
        value = _require_text(value, "Password cannot be blank")
        if not 6 <= len(value) <= 100:
            raise ValueError("Password must be between 6 and 100 characters")
        return value


class MessageResponse(BaseModel):
    message: str
