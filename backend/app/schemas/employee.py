from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Employee(BaseModel):
    """Employee record as served by the gateway. Identity is the ``id`` alone."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    salary: int = 0
    age: int = 0
    title: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Employee):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class EmployeeInput(BaseModel):
    """
    Payload for creating an employee.

    Every field is validated independently so a bad request reports all
    violated fields at once.
    """

    name: Optional[str] = Field(default=None, validate_default=True)
    salary: Optional[int] = Field(default=None, validate_default=True)
    age: Optional[int] = Field(default=None, validate_default=True)
    title: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("Name cannot be blank")
        return value

    @field_validator("salary")
    @classmethod
    def _salary_positive(cls, value: Optional[int]) -> int:
        if value is None:
            raise ValueError("Salary must be provided")
        if value <= 0:
            raise ValueError("Salary must be positive")
        return value

    @field_validator("age")
    @classmethod
    def _age_in_range(cls, value: Optional[int]) -> int:
        if value is None:
            raise ValueError("Age must be provided")
        if value < 18:
            raise ValueError("Age must be at least 18")
        if value > 100:
            raise ValueError("Age must not exceed 100")
        return value

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("Job title cannot be blank")
        return value
