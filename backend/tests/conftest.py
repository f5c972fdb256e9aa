"""
Shared test fixtures and configuration for the Employee API Gateway tests.
"""
import asyncio
import json
import os
import uuid
from datetime import timedelta
from typing import Callable, Optional

import httpx
import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-min-32-chars"
os.environ.pop("REDIS_URL", None)

BASE_URL = "http://mock-api.test/api/v1/employee"
TEST_PASSWORD = "secret123"


def employee_record(employee_id: str, name: str, salary: int, age: int = 30, title: str = "Engineer") -> dict:
    """A remote record using the prefixed field names of the mock API."""
    return {
        "id": employee_id,
        "employee_name": name,
        "employee_salary": salary,
        "employee_age": age,
        "employee_title": title,
        "employee_email": f"{name.lower().replace(' ', '.')}@company.com",
    }


class FakeMockApi:
    """
    In-process stand-in for the remote mock employee API.

    Serves the ``{"data": ..., "status": ...}`` envelope and records every
    request. ``queue_response`` makes the next matching call return a canned
    failure instead.
    """

    def __init__(self, employees: Optional[list] = None):
        self.employees = list(employees or [])
        self.requests: list[httpx.Request] = []
        self._queued: list[tuple[str, Callable[[httpx.Request], httpx.Response]]] = []

    def queue_response(self, method: str, status_code: int, headers: Optional[dict] = None, json=None):
        self._queued.append(
            (method, lambda request: httpx.Response(status_code, headers=headers, json=json))
        )

    def queue_exception(self, method: str, exc_type: type):
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc_type("simulated failure", request=request)
        self._queued.append((method, _raise))

    def calls(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    @staticmethod
    def _envelope(data, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, json={"data": data, "status": "Successfully processed request."})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        for index, (method, responder) in enumerate(self._queued):
            if method == request.method:
                del self._queued[index]
                return responder(request)

        path = request.url.path.rstrip("/")
        base_path = httpx.URL(BASE_URL).path

        if request.method == "GET" and path == base_path:
            return self._envelope(self.employees)

        if request.method == "GET" and path.startswith(base_path + "/"):
            employee_id = path[len(base_path) + 1:]
            for record in self.employees:
                if record["id"] == employee_id:
                    return self._envelope(record)
            return httpx.Response(404, json={"data": None, "status": "Employee not found"})

        if request.method == "POST" and path == base_path:
            body = json.loads(request.content)
            record = employee_record(
                str(uuid.uuid4()), body["name"], body["salary"], body["age"], body["title"]
            )
            self.employees.append(record)
            return self._envelope(record)

        if request.method == "DELETE" and path == base_path:
            name = json.loads(request.content)["name"]
            before = len(self.employees)
            self.employees = [r for r in self.employees if r["employee_name"] != name]
            return self._envelope(len(self.employees) < before)

        return httpx.Response(405, json={"data": None, "status": "Method not allowed"})


@pytest.fixture
def sample_employees():
    return [
        employee_record("1", "Tiger Nixon", 320800, 61, "System Architect"),
        employee_record("2", "Garrett Winters", 170750, 63, "Accountant"),
        employee_record("3", "Ashton Cox", 86000, 66, "Junior Technical Author"),
        employee_record("4", "Cedric Kelly", 433060, 22, "Senior Javascript Developer"),
    ]


@pytest.fixture
def fake_api(sample_employees):
    return FakeMockApi(sample_employees)


@pytest.fixture
def employee_client(fake_api):
    """MockEmployeeClient wired to the fake API with no backoff delay."""
    from app.services.employee_client import MockEmployeeClient

    return MockEmployeeClient(
        base_url=BASE_URL,
        backoff_seconds=0,
        transport=httpx.MockTransport(fake_api.handler),
    )


@pytest.fixture
def make_client():
    """Build a MockEmployeeClient around an arbitrary request handler."""
    from app.services.employee_client import MockEmployeeClient

    def _make(handler, **kwargs) -> "MockEmployeeClient":
        kwargs.setdefault("backoff_seconds", 0)
        return MockEmployeeClient(base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs)

    return _make


@pytest.fixture(scope="session")
def test_password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    from app.core.security import get_password_hash
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def credential_store(test_password_hash):
    """In-memory store holding an enabled user 'alice' and a disabled user 'mallory'."""
    from app.core.credential_store import CredentialRecord, InMemoryCredentialStore

    store = InMemoryCredentialStore()
    asyncio.run(store.add(CredentialRecord(username="alice", hashed_password=test_password_hash)))
    asyncio.run(store.add(CredentialRecord(
        username="mallory", hashed_password=test_password_hash, disabled=True
    )))
    return store


@pytest.fixture
def valid_jwt_token():
    """Generate a valid JWT token for 'alice'."""
    from app.core.security import create_access_token
    return create_access_token(subject="alice", expires_delta=timedelta(hours=1))


@pytest.fixture
def expired_jwt_token():
    """Generate an expired JWT token for 'alice'."""
    from app.core.security import create_access_token
    return create_access_token(subject="alice", expires_delta=timedelta(seconds=-1))


@pytest.fixture
def auth_headers(valid_jwt_token):
    return {"Authorization": f"Bearer {valid_jwt_token}"}


@pytest.fixture
def api_client(credential_store, employee_client):
    """
    TestClient with the credential store and employee service swapped for
    test doubles. Lifespan is not run, so no demo users are seeded.
    """
    from fastapi.testclient import TestClient

    from app.api.deps import get_employee_service, get_store
    from app.main import app
    from app.services.employee_service import EmployeeService

    app.dependency_overrides[get_store] = lambda: credential_store
    app.dependency_overrides[get_employee_service] = lambda: EmployeeService(employee_client)
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
