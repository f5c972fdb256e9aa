"""
Tests for app/services/employee_service.py - Employee façade.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.exceptions import EmployeeNotFoundError, RateLimitedError, ServiceUnavailableError
from app.schemas.employee import Employee, EmployeeInput
from app.services.employee_client import EmployeeLookup, LookupStatus
from app.services.employee_service import EmployeeService


def _employee(employee_id: str, name: str, salary: int) -> Employee:
    return Employee(id=employee_id, name=name, salary=salary, age=30, title="Engineer")


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.list_employees = AsyncMock(return_value=[
        _employee("1", "Alice Smith", 75000),
        _employee("2", "Bob Jones", 85000),
        _employee("3", "alicia keys", 60000),
        _employee("4", "", 90000),
    ])
    client.get_employee_by_id = AsyncMock()
    client.lookup_employee = AsyncMock()
    client.create_employee = AsyncMock()
    client.delete_employee = AsyncMock(return_value=True)
    return client


class TestSearch:
    """Test name search."""

    @pytest.mark.asyncio
    async def test_case_insensitive_substring(self, mock_client):
        service = EmployeeService(mock_client)

        results = await service.search_by_name("ALIC")

        assert [e.id for e in results] == ["1", "3"]

    @pytest.mark.asyncio
    async def test_blank_query_returns_everything(self, mock_client):
        service = EmployeeService(mock_client)

        assert await service.search_by_name("") == await service.get_all()
        assert len(await service.search_by_name("   ")) == 4

    @pytest.mark.asyncio
    async def test_nameless_records_never_match(self, mock_client):
        service = EmployeeService(mock_client)

        results = await service.search_by_name("o")

        assert "4" not in [e.id for e in results]

    @pytest.mark.asyncio
    async def test_no_match(self, mock_client):
        service = EmployeeService(mock_client)
        assert await service.search_by_name("zzz") == []


class TestSalaryAggregates:
    """Test highest salary and top earners."""

    @pytest.mark.asyncio
    async def test_highest_salary(self, mock_client):
        service = EmployeeService(mock_client)
        assert await service.highest_salary() == 90000

    @pytest.mark.asyncio
    async def test_highest_salary_empty(self, mock_client):
        mock_client.list_employees.return_value = []
        service = EmployeeService(mock_client)

        assert await service.highest_salary() == 0

    @pytest.mark.asyncio
    async def test_highest_salary_ignores_non_positive(self, mock_client):
        mock_client.list_employees.return_value = [_employee("1", "A", 0)]
        service = EmployeeService(mock_client)

        assert await service.highest_salary() == 0

    @pytest.mark.asyncio
    async def test_two_employee_example(self, mock_client):
        mock_client.list_employees.return_value = [
            _employee("1", "A", 75000),
            _employee("2", "B", 85000),
        ]
        service = EmployeeService(mock_client)

        assert await service.highest_salary() == 85000
        assert await service.top_earning_names() == ["B", "A"]

    @pytest.mark.asyncio
    async def test_top_earners_limited_and_sorted(self, mock_client):
        mock_client.list_employees.return_value = [
            _employee(str(i), f"E{i}", i * 1000) for i in range(1, 16)
        ]
        service = EmployeeService(mock_client)

        names = await service.top_earning_names()

        assert len(names) == 10
        assert names[0] == "E15"
        assert names[-1] == "E6"

    @pytest.mark.asyncio
    async def test_top_earner_ties_keep_remote_order(self, mock_client):
        mock_client.list_employees.return_value = [
            _employee("1", "First", 500),
            _employee("2", "Second", 500),
            _employee("3", "Top", 900),
        ]
        service = EmployeeService(mock_client)

        assert await service.top_earning_names(3) == ["Top", "First", "Second"]

    @pytest.mark.asyncio
    async def test_top_earners_non_positive_n(self, mock_client):
        service = EmployeeService(mock_client)
        assert await service.top_earning_names(0) == []


class TestGetById:
    """Test lookup by ID."""

    @pytest.mark.asyncio
    async def test_delegates_to_client(self, mock_client):
        mock_client.get_employee_by_id.return_value = _employee("2", "Bob Jones", 85000)
        service = EmployeeService(mock_client)

        employee = await service.get_by_id("2")

        assert employee.name == "Bob Jones"
        mock_client.get_employee_by_id.assert_awaited_once_with("2")

    @pytest.mark.asyncio
    async def test_rate_limit_is_not_masked_as_not_found(self, mock_client):
        mock_client.get_employee_by_id.side_effect = RateLimitedError(retry_after=7)
        service = EmployeeService(mock_client)

        with pytest.raises(RateLimitedError) as exc_info:
            await service.get_by_id("2")

        assert exc_info.value.retry_after == 7


class TestCreate:
    """Test employee creation."""

    @pytest.mark.asyncio
    async def test_delegates_to_client(self, mock_client):
        employee_in = EmployeeInput(name="New Hire", salary=50000, age=25, title="Analyst")
        mock_client.create_employee.return_value = _employee("99", "New Hire", 50000)
        service = EmployeeService(mock_client)

        employee = await service.create(employee_in)

        assert employee.id == "99"
        mock_client.create_employee.assert_awaited_once_with(employee_in)


class TestDelete:
    """Test deletion."""

    @pytest.mark.asyncio
    async def test_returns_deleted_id(self, mock_client):
        mock_client.lookup_employee.return_value = EmployeeLookup.found(_employee("2", "Bob Jones", 85000))
        service = EmployeeService(mock_client)

        assert await service.delete_by_id("2") == "2"
        mock_client.delete_employee.assert_awaited_once_with("2")

    @pytest.mark.asyncio
    async def test_missing_employee_never_calls_delete(self, mock_client):
        mock_client.lookup_employee.return_value = EmployeeLookup(status=LookupStatus.NOT_FOUND)
        service = EmployeeService(mock_client)

        with pytest.raises(EmployeeNotFoundError):
            await service.delete_by_id("404")

        mock_client.delete_employee.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_lookup_failures_propagate(self, mock_client):
        mock_client.lookup_employee.return_value = EmployeeLookup.from_error(ServiceUnavailableError())
        service = EmployeeService(mock_client)

        with pytest.raises(ServiceUnavailableError):
            await service.delete_by_id("2")

        mock_client.delete_employee.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_false_is_not_found(self, mock_client):
        mock_client.lookup_employee.return_value = EmployeeLookup.found(_employee("2", "Bob Jones", 85000))
        mock_client.delete_employee.return_value = False
        service = EmployeeService(mock_client)

        with pytest.raises(EmployeeNotFoundError):
            await service.delete_by_id("2")


class TestEmployeeModel:
    """Test Employee identity semantics."""

    def test_equality_by_id_only(self):
        assert _employee("1", "A", 1) == _employee("1", "B", 2)
        assert _employee("1", "A", 1) != _employee("2", "A", 1)

    def test_hash_by_id(self):
        assert len({_employee("1", "A", 1), _employee("1", "B", 2)}) == 1
