"""
Employee service: the façade the HTTP layer talks to.

Listing, lookup, creation and deletion are proxied to the mock employee API;
search and salary aggregates are computed here over the full listing.
"""

import logging
from typing import List, Optional

from app.core.exceptions import EmployeeNotFoundError
from app.schemas.employee import Employee, EmployeeInput
from app.services.employee_client import LookupStatus, MockEmployeeClient, get_employee_client

logger = logging.getLogger("employee_api.employee_service")

TOP_EARNERS_LIMIT = 10


class EmployeeService:

    def __init__(self, client: Optional[MockEmployeeClient] = None):
        self.client = client or get_employee_client()

    async def get_all(self) -> List[Employee]:
        logger.info("Retrieving all employees")
        return await self.client.list_employees()

    async def search_by_name(self, name_fragment: str) -> List[Employee]:
        """Case-insensitive substring match on name. A blank query matches everything."""
        employees = await self.get_all()
        if not name_fragment or not name_fragment.strip():
            return employees

        needle = name_fragment.lower()
        matches = [e for e in employees if e.name and needle in e.name.lower()]
        logger.info(f"Search for '{name_fragment}' matched {len(matches)} of {len(employees)} employees")
        return matches

    async def highest_salary(self) -> int:
        """Highest positive salary on record, 0 if there is none."""
        employees = await self.get_all()
        return max((e.salary for e in employees if e.salary > 0), default=0)

    async def top_earning_names(self, n: int = TOP_EARNERS_LIMIT) -> List[str]:
        """
        Names of the ``n`` best paid employees, highest salary first.

        The sort is stable, so equal salaries keep the order the remote store
        returned them in.
        """
        if n <= 0:
            return []
        employees = await self.get_all()
        ranked = sorted(employees, key=lambda e: e.salary or 0, reverse=True)
        return [e.name for e in ranked[:n]]

    async def get_by_id(self, employee_id: str) -> Employee:
        logger.info(f"Retrieving employee with ID: {employee_id}")
        return await self.client.get_employee_by_id(employee_id)

    async def create(self, employee_input: EmployeeInput) -> Employee:
        logger.info(f"Creating employee: {employee_input.name}")
        employee = await self.client.create_employee(employee_input)
        logger.info(f"Created employee with ID: {employee.id}")
        return employee

    async def delete_by_id(self, employee_id: str) -> str:
        """
        Delete an employee and return its ID.

        Existence is confirmed first; if the lookup fails for any reason the
        remote delete is never issued.

        Raises:
            EmployeeNotFoundError: no such employee, or the remote store
                reported that nothing was deleted
        """
        logger.info(f"Deleting employee with ID: {employee_id}")
        lookup = await self.client.lookup_employee(employee_id)
        if lookup.status is LookupStatus.NOT_FOUND:
            logger.info(f"Employee not found for deletion: {employee_id}")
            raise EmployeeNotFoundError(f"Employee not found with ID: {employee_id}")
        lookup.unwrap()

        deleted = await self.client.delete_employee(employee_id)
        if not deleted:
            raise EmployeeNotFoundError(f"Failed to delete employee with ID: {employee_id}")
        logger.info(f"Deleted employee with ID: {employee_id}")
        return employee_id
