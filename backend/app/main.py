import logging
import time
import traceback
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.api.v1 import api_router
from app.core.exceptions import ApiErrorCode, EmployeeApiError, RateLimitedError
from app.core.logging_config import setup_logging, RequestLoggingMiddleware
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.core.shutdown import lifespan_manager
from app.schemas.error import ErrorResponse, ValidationErrorResponse
from app.services.employee_client import get_employee_client

# Configure structured logging (JSON in production, colored in development)
setup_logging()
logger = logging.getLogger("employee_api")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        return response


class HealthResponse(BaseModel):
    """Health check response format."""
    status: str
    service: str
    version: str
    environment: str
    checks: Dict[str, bool]


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Authenticated CRUD gateway over the mock employee API",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan_manager,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

_default_dev_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
cors_origins = settings.ALLOWED_ORIGINS or _default_dev_origins

_HTTP_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: ApiErrorCode.VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: ApiErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ApiErrorCode.ACCESS_DENIED,
    status.HTTP_404_NOT_FOUND: ApiErrorCode.RESOURCE_NOT_FOUND,
}


def get_cors_headers(request: Request) -> dict:
    """Get CORS headers based on request origin."""
    origin = request.headers.get("origin", "")
    if origin in cors_origins:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        }
    return {}


def _error_response(
    request: Request,
    code: ApiErrorCode,
    message: str,
    status_code: int,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = ErrorResponse(
        code=code.value,
        message=message,
        status=status_code,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=content.model_dump(), headers=headers)


@app.exception_handler(EmployeeApiError)
async def employee_api_exception_handler(request: Request, exc: EmployeeApiError) -> JSONResponse:
    """Render typed gateway errors in the standard envelope."""
    log_level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
    )

    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return _error_response(request, exc.code, exc.message, exc.http_status, headers)


def _field_name(loc: tuple) -> str:
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


def _clean_message(message: str) -> str:
    # pydantic prefixes messages raised from validators
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every violated field with a 400."""
    field_errors: Dict[str, str] = {}
    for error in exc.errors():
        field = _field_name(tuple(error.get("loc", ())))
        field_errors.setdefault(field, _clean_message(error.get("msg", "Invalid value")))

    logger.warning(f"Validation failed on {request.method} {request.url.path}: {field_errors}")
    content = ValidationErrorResponse(
        code=ApiErrorCode.VALIDATION_ERROR.value,
        message="Validation failed",
        status=status.HTTP_400_BAD_REQUEST,
        path=request.url.path,
        field_errors=field_errors,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Auth rejections and unknown routes use the same envelope."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, ApiErrorCode.UNKNOWN_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else code.default_message
    if exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        logger.warning(f"{exc.status_code} on {request.method} {request.url.path}: {message}")
    return _error_response(request, code, message, exc.status_code, getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all for unhandled exceptions.
    In production, internal details are hidden behind a reference ID.
    """
    error_id = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")

    logger.error(
        f"Unhandled exception [{error_id}]: {exc}\n"
        f"Path: {request.url.path}\n"
        f"Method: {request.method}\n"
        f"Traceback: {traceback.format_exc()}"
    )

    if settings.ENVIRONMENT.lower() == "production":
        message = f"An unexpected error occurred. Reference ID: {error_id}"
    else:
        message = f"{exc.__class__.__name__}: {exc}"

    return _error_response(
        request,
        ApiErrorCode.UNKNOWN_ERROR,
        message,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        get_cors_headers(request),
    )


# When credentials are needed, we must specify exact origins (not "*")
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix=settings.API_V1_STR)

# Prometheus metrics, exposed at /metrics
# Untemplated paths are not recorded
instrumentator = Instrumentator(
    should_group_status_codes=False,
    should_ignore_untemplated=True,
    should_respect_env_var=False,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/health", "/metrics"],
    inprogress_name="employee_api_inprogress_requests",
    inprogress_labels=True,
)
instrumentator.instrument(app).expose(app, include_in_schema=False)


# Cached so frequent probes do not hammer the mock API
_health_cache: Dict[str, dict] = {
    "mock_api": {"healthy": None, "timestamp": 0},
}
_HEALTH_CACHE_TTL = 15  # seconds


async def check_mock_api_connection() -> bool:
    """Check reachability of the mock employee API, cached for a few seconds."""
    now = time.time()
    cached = _health_cache["mock_api"]

    if cached["healthy"] is not None and (now - cached["timestamp"]) < _HEALTH_CACHE_TTL:
        return cached["healthy"]

    healthy = await get_employee_client().is_reachable()
    if not healthy:
        logger.warning("Mock employee API health check failed")

    _health_cache["mock_api"] = {"healthy": healthy, "timestamp": now}
    return healthy


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Liveness plus the mock API reachability.
    The gateway itself is alive as long as it answers; an unreachable mock API
    only degrades the status.
    """
    checks = {"mock_api": await check_mock_api_connection()}

    return HealthResponse(
        status="healthy" if all(checks.values()) else "degraded",
        service="employee-api-gateway",
        version="1.0.0",
        environment=settings.ENVIRONMENT,
        checks=checks,
    )


@app.get("/")
async def root():
    return {"message": f"Welcome to the {settings.PROJECT_NAME}"}
