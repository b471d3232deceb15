"""
Employee service: existence checks, cache-aside reads and mutations.

Every mutation invalidates the single-record key, all cached list pages
(including the hierarchy snapshot) and every cached subordinate traversal
before returning. A changed record can appear in the traversal of any of
its ancestors, so traversal keys are dropped wholesale.
"""

from typing import Any

from app.core.cache import CacheService
from app.core.cache_keys import (
    ALL_EMPLOYEES_PREFIX,
    EMPLOYEE_LIST_TTL,
    EMPLOYEE_TTL,
    SUBORDINATES_TTL,
    all_employees_key,
    employee_key,
    subordinates_key,
    subordinates_pattern,
)
from app.core.exceptions import DuplicateEmailError, EmployeeNotFoundError, InvalidManagerError
from app.core.logging import get_logger
from app.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeRead,
    EmployeeUpdate,
    SubordinatesQuery,
)
from app.repositories.employee import EmployeeRepository
from app.services.hierarchy import HierarchyResolver

logger = get_logger(__name__)


def to_payload(employee: Employee) -> dict[str, Any]:
    return EmployeeRead.model_validate(employee).model_dump()


class EmployeeService:
    def __init__(
        self,
        repository: EmployeeRepository,
        cache: CacheService,
        resolver: HierarchyResolver | None = None,
    ):
        self.repository = repository
        self.cache = cache
        self.resolver = resolver or HierarchyResolver(repository, cache)

    # Reads

    def get_employee(self, employee_id: int) -> Employee:
        """Uncached lookup; raises EmployeeNotFoundError."""
        employee = self.repository.find_by_id(employee_id)
        if employee is None:
            logger.warning(f"Employee with ID {employee_id} not found")
            raise EmployeeNotFoundError(employee_id)
        return employee

    def find_one(self, employee_id: int) -> dict[str, Any]:
        cache_key = employee_key(employee_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for employee ID: {employee_id}")
            return cached

        payload = to_payload(self.get_employee(employee_id))
        self.cache.set(cache_key, payload, ttl=EMPLOYEE_TTL)
        return payload

    def find_all(self, page: int = 1, limit: int = 50) -> list[dict[str, Any]]:
        cache_key = all_employees_key(page, limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for employees page {page} (limit {limit})")
            return cached

        payload = [to_payload(emp) for emp in self.repository.find_page(page, limit)]
        self.cache.set(cache_key, payload, ttl=EMPLOYEE_LIST_TTL)
        logger.info(f"Retrieved {len(payload)} employee(s) for page {page}")
        return payload

    def find_subordinates(self, params: SubordinatesQuery) -> list[dict[str, Any]]:
        """
        Subordinates of params.id, served from cache when possible.

        Raises EmployeeNotFoundError when the root employee does not exist.
        """
        self.find_one(params.id)

        cache_key = subordinates_key(params.id, params.depth, params.page, params.limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        subordinates = self.resolver.find_subordinates(
            params.id, depth=params.depth, page=params.page, limit=params.limit
        )
        payload = [to_payload(emp) for emp in subordinates]
        self.cache.set(cache_key, payload, ttl=SUBORDINATES_TTL)

        logger.info(f"Resolved {len(payload)} subordinate(s) for employee {params.id}")
        return payload

    # Mutations

    def create(self, data: EmployeeCreate) -> Employee:
        values = data.model_dump()
        if data.email is not None:
            self._check_email(data.email)
        if data.manager_id is not None:
            self._check_manager(data.manager_id)

        employee = self.repository.create(values)
        self.invalidate(employee.id)

        logger.info(f"Employee created successfully with ID: {employee.id}")
        return employee

    def update(self, employee_id: int, data: EmployeeUpdate) -> Employee:
        employee = self.get_employee(employee_id)
        values = data.model_dump(exclude_unset=True)

        email = values.get("email")
        if email is not None and email != employee.email:
            self._check_email(email)

        manager_id = values.get("manager_id")
        if manager_id is not None:
            self._check_manager(manager_id, employee_id=employee_id)

        employee = self.repository.update(employee, values)
        self.invalidate(employee_id)

        logger.info(f"Employee {employee_id} updated: {sorted(values)}")
        return employee

    def remove(self, employee_id: int) -> None:
        employee = self.get_employee(employee_id)
        # Direct reports lose their manager reference along with the record
        report_ids = [emp.id for emp in self.repository.find_by_manager_id(employee_id)]

        self.repository.delete(employee)
        self.invalidate(employee_id)
        for report_id in report_ids:
            self.cache.delete(employee_key(report_id))

        logger.info(f"Employee {employee_id} deleted")

    def invalidate(self, employee_id: int | None = None) -> None:
        if employee_id is not None:
            self.cache.delete(employee_key(employee_id))
        self.cache.invalidate_by_pattern(ALL_EMPLOYEES_PREFIX)
        self.cache.invalidate_by_pattern(subordinates_pattern())

    def _check_manager(self, manager_id: int, employee_id: int | None = None) -> None:
        if employee_id is not None and manager_id == employee_id:
            raise InvalidManagerError(manager_id, "an employee cannot manage themselves")
        if self.repository.find_by_id(manager_id) is None:
            raise InvalidManagerError(manager_id, "manager does not exist")

    def _check_email(self, email: str) -> None:
        if self.repository.find_by_email(email) is not None:
            logger.info(f"Employee already exists for {email}")
            raise DuplicateEmailError(email)
