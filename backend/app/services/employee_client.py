"""
Mock Employee API client for the Employee API Gateway.

Handles all communication with the remote employee store:
- Listing, fetching, creating and deleting employee records
- Bounded retries with exponential backoff on transient failures
- Mapping remote failures to the typed errors in app.core.exceptions
- Normalizing inconsistently named payload fields into Employee
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import (
    EmployeeApiError,
    EmployeeNotFoundError,
    ExternalApiError,
    ExternalTimeoutError,
    RateLimitedError,
    ServiceUnavailableError,
    UnknownApiError,
)
from app.schemas.employee import Employee, EmployeeInput

logger = logging.getLogger("employee_api.employee_client")

UNAVAILABLE_MESSAGE = "The service is temporarily unavailable. Please try again later."
TIMEOUT_MESSAGE = "Request timed out. Please try again later."
CLIENT_ERROR_MESSAGE = "Unable to process your request at this time. Please try again later."
EXHAUSTED_MESSAGE = "API request failed after multiple attempts. Please try again later."

# Prefixed key first, then the unprefixed variants
_FIELD_KEYS = {
    "name": ("employee_name", "name"),
    "salary": ("employee_salary", "salary"),
    "age": ("employee_age", "age"),
    "title": ("employee_title", "title", "job_title"),
}

# Network-level failures that are worth another attempt
_TRANSIENT_TRANSPORT_ERRORS = (httpx.NetworkError, httpx.RemoteProtocolError, httpx.ProxyError)


class LookupStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TIMEOUT = "timeout"
    EXTERNAL_ERROR = "external_error"
    UNKNOWN = "unknown"


_STATUS_BY_ERROR = {
    EmployeeNotFoundError: LookupStatus.NOT_FOUND,
    RateLimitedError: LookupStatus.RATE_LIMITED,
    ServiceUnavailableError: LookupStatus.SERVICE_UNAVAILABLE,
    ExternalTimeoutError: LookupStatus.TIMEOUT,
    ExternalApiError: LookupStatus.EXTERNAL_ERROR,
    UnknownApiError: LookupStatus.UNKNOWN,
}
_ERROR_BY_STATUS = {status: error for error, status in _STATUS_BY_ERROR.items()}


@dataclass(frozen=True)
class EmployeeLookup:
    """Outcome of fetching a single employee: the record or the failure kind."""
    status: LookupStatus
    employee: Optional[Employee] = None
    retry_after: Optional[int] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is LookupStatus.OK

    @classmethod
    def found(cls, employee: Employee) -> "EmployeeLookup":
        return cls(status=LookupStatus.OK, employee=employee)

    @classmethod
    def from_error(cls, error: EmployeeApiError) -> "EmployeeLookup":
        return cls(
            status=_STATUS_BY_ERROR.get(type(error), LookupStatus.UNKNOWN),
            retry_after=getattr(error, "retry_after", None),
            message=error.message,
        )

    def unwrap(self) -> Employee:
        """Return the employee, or raise the typed error for this outcome."""
        if self.ok:
            return self.employee
        if self.status is LookupStatus.RATE_LIMITED:
            raise RateLimitedError(self.message, retry_after=self.retry_after or settings.DEFAULT_RETRY_AFTER_SECONDS)
        raise _ERROR_BY_STATUS.get(self.status, UnknownApiError)(self.message)


def _first_present(data: Dict[str, Any], keys: tuple) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _to_int(value: Any, field_name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    try:
        if isinstance(value, (int, float)):
            return int(value)
        text = str(value).strip()
        try:
            return int(text)
        except ValueError:
            return int(float(text))
    except (ValueError, OverflowError):
        # NaN, infinities and non-numeric text
        logger.warning(f"Failed to parse integer value for {field_name}: {value!r}")
        return 0


def map_employee(data: Any) -> Employee:
    """
    Map a raw remote record onto Employee.

    Tolerates prefixed (``employee_salary``) and unprefixed (``salary``) keys;
    missing numbers become 0 and missing strings become "".
    """
    if not isinstance(data, dict):
        raise ExternalApiError("Invalid employee data received from API")

    name = _first_present(data, _FIELD_KEYS["name"])
    title = _first_present(data, _FIELD_KEYS["title"])
    return Employee(
        id=str(data["id"]) if data.get("id") is not None else "",
        name=str(name) if name is not None else "",
        salary=_to_int(_first_present(data, _FIELD_KEYS["salary"]), "salary"),
        age=_to_int(_first_present(data, _FIELD_KEYS["age"]), "age"),
        title=str(title) if title is not None else "",
    )


class MockEmployeeClient:
    """
    Async HTTP client for the mock employee API.

    Uses httpx.AsyncClient with:
    - Manual retry logic with exponential backoff
    - Separate connect and read timeouts
    - Typed error mapping
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        backoff_multiplier: Optional[float] = None,
        backoff_max_seconds: Optional[float] = None,
        default_retry_after: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.MOCK_API_BASE_URL).rstrip("/")
        self.connect_timeout = connect_timeout if connect_timeout is not None else settings.HTTP_CONNECT_TIMEOUT
        self.read_timeout = read_timeout if read_timeout is not None else settings.HTTP_READ_TIMEOUT
        self.max_attempts = max_attempts if max_attempts is not None else settings.RETRY_MAX_ATTEMPTS
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.RETRY_BACKOFF_SECONDS
        self.backoff_multiplier = (
            backoff_multiplier if backoff_multiplier is not None else settings.RETRY_BACKOFF_MULTIPLIER
        )
        self.backoff_max_seconds = (
            backoff_max_seconds if backoff_max_seconds is not None else settings.RETRY_BACKOFF_MAX_SECONDS
        )
        self.default_retry_after = (
            default_retry_after if default_retry_after is not None else settings.DEFAULT_RETRY_AFTER_SECONDS
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        logger.info(f"Initialized mock employee client with base URL: {self.base_url}")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.read_timeout, connect=self.connect_timeout),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "User-Agent": settings.PROJECT_NAME,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based failed attempt."""
        return min(self.backoff_seconds * (self.backoff_multiplier ** attempt), self.backoff_max_seconds)

    def _retry_after_seconds(self, response: httpx.Response) -> int:
        raw = response.headers.get("Retry-After")
        if raw is not None:
            try:
                return int(raw.strip())
            except ValueError:
                logger.warning(f"Failed to parse Retry-After header: {raw!r}")
        return self.default_retry_after

    def _transient_error(self, response: httpx.Response) -> Optional[EmployeeApiError]:
        """Typed error for a retryable status code, None otherwise."""
        if response.status_code == 429:
            return RateLimitedError(retry_after=self._retry_after_seconds(response))
        if response.status_code >= 500:
            return ServiceUnavailableError(UNAVAILABLE_MESSAGE)
        return None

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        json: Optional[Dict] = None,
        retry: bool = True,
    ) -> httpx.Response:
        """
        Execute HTTP request with exponential backoff retry.

        Args:
            method: HTTP method (GET, POST, DELETE)
            url: Full URL to request
            json: Optional JSON payload
            retry: Whether transient failures are retried

        Returns:
            httpx.Response with a non-transient status code

        Raises:
            RateLimitedError, ServiceUnavailableError or ExternalTimeoutError
            for the last transient failure once attempts are exhausted;
            UnknownApiError for any other transport problem
        """
        client = await self._get_client()
        attempts = max(self.max_attempts, 1) if retry else 1
        last_error: Optional[EmployeeApiError] = None

        for attempt in range(attempts):
            logger.debug(f"Request: {method} {url} (attempt {attempt + 1}/{attempts})")
            try:
                response = await client.request(method, url, json=json)
            except httpx.TimeoutException as e:
                last_error = ExternalTimeoutError(TIMEOUT_MESSAGE)
                logger.warning(f"Timeout on {method} {url}: {e!r}")
            except _TRANSIENT_TRANSPORT_ERRORS as e:
                last_error = ServiceUnavailableError(UNAVAILABLE_MESSAGE)
                logger.warning(f"Connection failure on {method} {url}: {e!r}")
            except httpx.HTTPError as e:
                logger.error(f"Unexpected transport error on {method} {url}: {e!r}")
                raise UnknownApiError(f"Unexpected error calling employee API: {e}") from e
            else:
                logger.debug(f"Response: {method} {url} -> {response.status_code}")
                last_error = self._transient_error(response)
                if last_error is None:
                    return response
                logger.warning(f"Transient response on {method} {url}: {response.status_code}")

            if attempt < attempts - 1:
                wait_time = self.backoff_delay(attempt)
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{attempts}). "
                    f"Retrying in {wait_time}s..."
                )
                await asyncio.sleep(wait_time)
            elif attempts > 1:
                logger.error(f"Request failed after {attempts} attempts: {last_error.message}")

        raise last_error

    def _read_data(self, response: httpx.Response) -> Any:
        """Return the ``data`` member of the remote envelope."""
        try:
            body = response.json()
        except ValueError as e:
            raise ExternalApiError("Invalid JSON response from mock API") from e
        if not isinstance(body, dict):
            raise ExternalApiError("Empty response from mock API")
        logger.debug(f"Mock API status: {body.get('status')}")
        return body.get("data")

    def _raise_for_client_error(self, response: httpx.Response, action: str) -> None:
        if response.status_code >= 400:
            logger.error(f"Client error {action}: {response.status_code} - {response.text[:200]}")
            raise ExternalApiError(CLIENT_ERROR_MESSAGE)

    async def list_employees(self) -> List[Employee]:
        """
        Fetch every employee.

        GET {base_url}

        Raises:
            ServiceUnavailableError: once transient failures exhaust the retries
        """
        logger.info(f"Fetching all employees from {self.base_url}")
        try:
            response = await self._request_with_retry("GET", self.base_url)
        except (RateLimitedError, ExternalTimeoutError, ServiceUnavailableError) as e:
            raise ServiceUnavailableError(EXHAUSTED_MESSAGE) from e

        self._raise_for_client_error(response, "fetching employees")
        data = self._read_data(response)
        if data is None:
            raise ExternalApiError("Empty data in response")
        if not isinstance(data, list):
            raise ExternalApiError("Unexpected employee list payload from mock API")

        employees = [map_employee(item) for item in data]
        logger.debug(f"Found {len(employees)} employees")
        return employees

    async def lookup_employee(self, employee_id: str) -> EmployeeLookup:
        """
        Fetch one employee without raising for classified failures.

        GET {base_url}/{employee_id}
        """
        try:
            return EmployeeLookup.found(await self._fetch_employee(employee_id))
        except EmployeeApiError as e:
            return EmployeeLookup.from_error(e)

    async def get_employee_by_id(self, employee_id: str) -> Employee:
        """
        Fetch one employee.

        Raises:
            EmployeeNotFoundError: the remote store has no such record
            RateLimitedError: the remote store kept answering 429
        """
        lookup = await self.lookup_employee(employee_id)
        return lookup.unwrap()

    async def _fetch_employee(self, employee_id: str) -> Employee:
        logger.debug(f"Fetching employee with ID: {employee_id}")
        response = await self._request_with_retry("GET", f"{self.base_url}/{employee_id}")

        if response.status_code == 404:
            logger.info(f"Employee not found with ID: {employee_id}")
            raise EmployeeNotFoundError(f"Employee not found with ID: {employee_id}")
        self._raise_for_client_error(response, "fetching employee")

        data = self._read_data(response)
        if data is None:
            raise EmployeeNotFoundError(f"Employee not found with ID: {employee_id}")
        return map_employee(data)

    async def create_employee(self, employee_input: EmployeeInput) -> Employee:
        """
        Create an employee. Not retried.

        POST {base_url}
        """
        payload = {
            "name": employee_input.name,
            "salary": employee_input.salary,
            "age": employee_input.age,
            "title": employee_input.title,
        }
        logger.debug(f"Creating employee: {payload}")
        response = await self._request_with_retry("POST", self.base_url, json=payload, retry=False)
        self._raise_for_client_error(response, "creating employee")

        data = self._read_data(response)
        if data is None:
            raise ExternalApiError("Empty response from mock API")
        return map_employee(data)

    async def delete_employee(self, employee_id: str) -> bool:
        """
        Delete an employee by ID.

        The remote API deletes by name, so the record is fetched first.
        Any failure of that fetch propagates and no delete is issued.

        DELETE {base_url} with body {"name": ...}
        """
        employee = await self.get_employee_by_id(employee_id)

        logger.debug(f"Deleting employee {employee_id} by name")
        response = await self._request_with_retry(
            "DELETE", self.base_url, json={"name": employee.name}, retry=False
        )
        self._raise_for_client_error(response, "deleting employee")

        data = self._read_data(response)
        if data is None:
            raise ExternalApiError("Empty response from mock API")
        return bool(data)

    async def is_reachable(self) -> bool:
        """Single unretried probe used by the health check."""
        try:
            client = await self._get_client()
            response = await client.get(self.base_url)
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.debug(f"Mock API health probe failed: {e!r}")
            return False


# Global singleton instance
_employee_client: Optional[MockEmployeeClient] = None


def get_employee_client() -> MockEmployeeClient:
    """Get the global mock employee client instance."""
    global _employee_client
    if _employee_client is None:
        _employee_client = MockEmployeeClient()
    return _employee_client


async def close_employee_client() -> None:
    """Close the global mock employee client."""
    global _employee_client
    if _employee_client is not None:
        await _employee_client.close()
        _employee_client = None
