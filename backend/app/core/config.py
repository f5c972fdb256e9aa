from typing import Optional, List

from pydantic import Field, AliasChoices, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known insecure default values that must be changed in production
_INSECURE_SECRET_KEYS = {
    "your-secret-key-change-this-in-production-min-32-chars",
    "changeme",
    "secret",
    "development-secret",
}
_INSECURE_ADMIN_KEYS = {
    "adminSecretKey123",
    "admin",
    "changeme",
}

_INSECURE_ALLOWED_ORIGINS_DEFAULTS = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}


class Settings(BaseSettings):
    # Allow comma-separated env vars for list fields like ALLOWED_ORIGINS
    model_config = SettingsConfigDict(env_file=".env", env_parse_delimiter=",", extra="ignore")
    PROJECT_NAME: str = "Employee API Gateway"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # CORS
    # NOTE: Pydantic Settings treats list fields as "complex" env values (expects JSON).
    # We accept either a JSON array or a comma-separated string by allowing `str` here
    # and normalizing via the field validator below.
    ALLOWED_ORIGINS: List[str] | str = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "BACKEND_CORS_ORIGINS"),
    )

    # Security settings
    SECRET_KEY: str = Field(
        default="your-secret-key-change-this-in-production-min-32-chars",
        validation_alias=AliasChoices("JWT_SECRET_KEY", "SECRET_KEY"),
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Static shared secret for the registration endpoint (Global-Token header)
    ADMIN_API_KEY: str = Field(
        default="adminSecretKey123",
        validation_alias=AliasChoices("ADMIN_API_KEY", "API_ADMIN_KEY"),
    )

    # Seed admin/admin and user/user123 into the credential store on startup
    SEED_DEMO_USERS: bool = True

    # Credential store backend. In-memory when unset.
    REDIS_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_URL", "CACHE_REDIS_URL"),
    )

    # Remote mock employee API
    MOCK_API_BASE_URL: str = Field(
        default="http://localhost:8112/api/v1/employee",
        validation_alias=AliasChoices("MOCK_API_BASE_URL", "MOCK_API_URL"),
    )
    HTTP_CONNECT_TIMEOUT: float = 5.0
    HTTP_READ_TIMEOUT: float = 10.0

    # Outbound retry policy (attempts include the first call)
    RETRY_MAX_ATTEMPTS: int = 2
    RETRY_BACKOFF_SECONDS: float = 2.0
    RETRY_BACKOFF_MULTIPLIER: float = 2.0
    RETRY_BACKOFF_MAX_SECONDS: float = 10.0
    DEFAULT_RETRY_AFTER_SECONDS: int = 5

    # Inbound rate limiting (auth endpoints)
    RATE_LIMIT_ENABLED: bool = True
    AUTH_LOGIN_RATE_LIMIT: str = "5/minute"
    AUTH_REGISTER_RATE_LIMIT: str = "3/minute"

    def model_post_init(self, __context):
        """
        Validate configuration on startup. In production, fail hard if insecure defaults are detected.
        This prevents accidental deployment with development credentials.
        """
        is_prod = self.ENVIRONMENT.lower() == "production"
        errors = []

        if self.RETRY_MAX_ATTEMPTS < 1:
            errors.append("RETRY_MAX_ATTEMPTS must be at least 1.")

        if self.HTTP_CONNECT_TIMEOUT <= 0 or self.HTTP_READ_TIMEOUT <= 0:
            errors.append("HTTP_CONNECT_TIMEOUT and HTTP_READ_TIMEOUT must be positive.")

        # Validate SECRET_KEY
        if self.SECRET_KEY in _INSECURE_SECRET_KEYS or len(self.SECRET_KEY) < 32:
            if is_prod:
                errors.append(
                    "SECRET_KEY is insecure. Generate a new key with: "
                    f"python -c \"import secrets; print(secrets.token_urlsafe(32))\""
                )

        # Validate ADMIN_API_KEY
        if self.ADMIN_API_KEY in _INSECURE_ADMIN_KEYS:
            if is_prod:
                errors.append(
                    "ADMIN_API_KEY is using a default value. "
                    "Set a unique ADMIN_API_KEY in your environment."
                )

        if is_prod and self.SEED_DEMO_USERS:
            errors.append("SEED_DEMO_USERS must be false in production.")

        # Require explicit ALLOWED_ORIGINS in production (avoid accidental localhost defaults)
        if is_prod and (not self.ALLOWED_ORIGINS or set(self.ALLOWED_ORIGINS).issubset(_INSECURE_ALLOWED_ORIGINS_DEFAULTS)):
            errors.append(
                "ALLOWED_ORIGINS must be set to your domain(s) in production (not localhost defaults)."
            )

        # In production, DEBUG must be disabled
        if is_prod and self.DEBUG:
            errors.append("DEBUG must be False in production.")

        # Fail hard with all errors at once for easier debugging
        if errors:
            error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value

    @field_validator("MOCK_API_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


settings = Settings()
