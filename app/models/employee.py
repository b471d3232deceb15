"""
Employee database model and schemas for the Organogram Service.

An employee optionally points at a manager through manager_id; together
the references form the organisation forest traversed by the hierarchy
resolver.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, EmailStr
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Database Models


class Employee(SQLModel, table=True):
    """ORM model for Employee table."""

    __tablename__ = "employees"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Identity
    first_name: str = Field(max_length=100, min_length=1)
    last_name: str = Field(max_length=100, min_length=1)
    email: Optional[str] = Field(default=None, max_length=255, unique=True)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    # Job Details
    position: str = Field(max_length=150)
    department: Optional[str] = Field(default=None, max_length=100)
    manager_id: Optional[int] = Field(
        default=None,
        foreign_key="employees.id",
        index=True,
        ondelete="SET NULL",
    )
    is_active: bool = Field(default=True)

    # Metadata
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# Request Schemas


class EmployeeCreate(BaseModel):
    """Input schema for creating a new employee."""

    first_name: str = PydanticField(min_length=1, max_length=100)
    last_name: str = PydanticField(min_length=1, max_length=100)
    position: str = PydanticField(min_length=1, max_length=150)
    department: Optional[str] = PydanticField(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = PydanticField(default=None, max_length=20)
    manager_id: Optional[int] = PydanticField(default=None, ge=1)


class EmployeeUpdate(BaseModel):
    """Input schema for updating an existing employee. Only set fields are applied."""

    first_name: Optional[str] = PydanticField(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = PydanticField(default=None, min_length=1, max_length=100)
    position: Optional[str] = PydanticField(default=None, min_length=1, max_length=150)
    department: Optional[str] = PydanticField(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = PydanticField(default=None, max_length=20)
    manager_id: Optional[int] = PydanticField(default=None, ge=1)
    is_active: Optional[bool] = None


class SubordinatesQuery(BaseModel):
    """Parameters of a subordinate lookup. depth=-1 means all levels."""

    id: int = PydanticField(ge=1)
    depth: int = PydanticField(default=-1, ge=-1)
    page: int = PydanticField(default=1, ge=1)
    limit: int = PydanticField(default=10, ge=1)


# Response Schemas


class EmployeeRead(SQLModel):
    """Output schema for employee API responses."""

    id: int
    first_name: str
    last_name: str
    email: Optional[str]
    phone_number: Optional[str]
    position: str
    department: Optional[str]
    manager_id: Optional[int]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CacheStatus(BaseModel):
    """Observability snapshot of the cache layer."""

    connected: bool
    tier: str
    local_size: int
