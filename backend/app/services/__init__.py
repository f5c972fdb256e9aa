# Services Package
# Re-exports for convenience

from app.services.auth_service import AuthenticationManager, AuthService
from app.services.employee_client import (
    EmployeeLookup,
    LookupStatus,
    MockEmployeeClient,
    close_employee_client,
    get_employee_client,
)
from app.services.employee_service import EmployeeService

__all__ = [
    "AuthenticationManager",
    "AuthService",
    "EmployeeLookup",
    "LookupStatus",
    "MockEmployeeClient",
    "close_employee_client",
    "get_employee_client",
    "EmployeeService",
]
