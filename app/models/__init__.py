"""
Organogram Service Models.

Exports all model classes for easy importing.
"""

from app.models.employee import (
    CacheStatus,
    Employee,
    EmployeeCreate,
    EmployeeRead,
    EmployeeUpdate,
    SubordinatesQuery,
)

__all__ = [
    # Database Model
    "Employee",
    # Request Schemas
    "EmployeeCreate",
    "EmployeeUpdate",
    "SubordinatesQuery",
    # Response Schemas
    "EmployeeRead",
    "CacheStatus",
]
