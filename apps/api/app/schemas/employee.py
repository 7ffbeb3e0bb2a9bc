"""Pydantic schemas for employees and their documents.

Salary, address and emergency contact are stored as native JSON columns;
these models are the validation layer for what goes into them.
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel


class Salary(CamelModel):
    amount: float = Field(ge=0)
    currency: str = "USD"
    frequency: Literal["hourly", "annual"] = "annual"


class Address(CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""


class EmergencyContact(CamelModel):
    name: str
    relationship: str
    phone: str
    email: str | None = None


class EmployeeCreate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    department: str | None = None
    role: str | None = None
    hire_date: date | None = None
    phone: str | None = None
    application_id: UUID | None = None
    job_id: UUID | None = None
    salary: Salary | None = None
    benefits: list[str] | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None


class EmployeeUpdate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    department: str | None = None
    role: str | None = None
    job_id: UUID | None = None
    hire_date: date | None = None
    salary: Salary | None = None
    benefits: list[str] | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    status: str | None = None
    termination_date: date | None = None
    termination_reason: str | None = None


class EmployeeRead(CamelModel):
    id: UUID
    application_id: UUID | None = None
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    department: str
    role: str
    job_id: UUID | None = None
    hire_date: date
    salary: Salary | None = None
    benefits: list[str] | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    status: str
    termination_date: date | None = None
    termination_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class EmployeeListResponse(CamelModel):
    employees: list[EmployeeRead]
    departments: list[str]


class EmployeePrefill(CamelModel):
    """Form values for converting a hired application into an employee."""
    application_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    department: str | None = None
    role: str | None = None
    job_id: UUID


class DocumentRead(CamelModel):
    id: UUID
    employee_id: UUID
    name: str
    type: str
    file_path: str
    file_size: int | None = None
    mime_type: str | None = None
    description: str | None = None
    expires_at: date | None = None
    uploaded_by: UUID
    created_at: datetime
