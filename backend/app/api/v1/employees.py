from typing import Any, List

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from app.api.deps import get_current_user, get_employee_service
from app.core.credential_store import CredentialRecord
from app.schemas.employee import Employee, EmployeeInput
from app.services.employee_service import EmployeeService

router = APIRouter()

# Fixed paths are declared before /{employee_id} so they are not captured by it


@router.get("", response_model=List[Employee])
async def read_employees(
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    """
    Retrieve all employees.
    """
    return await service.get_all()


@router.get("/search/{search_string}", response_model=List[Employee])
async def search_employees(
    search_string: str,
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    """
    Employees whose name contains the search string, ignoring case.
    """
    return await service.search_by_name(search_string)


@router.get("/highestSalary", response_model=int)
async def read_highest_salary(
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    return await service.highest_salary()


@router.get("/topTenHighestEarningEmployeeNames", response_model=List[str])
async def read_top_earner_names(
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    """
    Names of the ten highest paid employees, best paid first.
    """
    return await service.top_earning_names(10)


@router.get("/{employee_id}", response_model=Employee)
async def read_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    """
    Get employee by ID.
    """
    return await service.get_by_id(employee_id)


@router.post("", response_model=Employee, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_in: EmployeeInput,
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    """
    Create an employee in the remote store.
    """
    return await service.create(employee_in)


@router.delete("/{employee_id}", response_class=PlainTextResponse)
async def delete_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service),
    current_user: CredentialRecord = Depends(get_current_user),
) -> Any:
    """
    Delete an employee. The response body is the deleted ID.
    """
    return await service.delete_by_id(employee_id)
