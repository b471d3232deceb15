"""
Organogram Service data access.
"""

from app.repositories.employee import EmployeeRepository

__all__ = ["EmployeeRepository"]
