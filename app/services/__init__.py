"""
Organogram Service business logic.
"""

from app.services.employee import EmployeeService
from app.services.hierarchy import HierarchyResolver, build_adjacency, walk_subordinates

__all__ = [
    "EmployeeService",
    "HierarchyResolver",
    "build_adjacency",
    "walk_subordinates",
]
