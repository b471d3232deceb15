"""
Employee API endpoints.

Provides endpoints for:
- Employee CRUD operations
- Manager/subordinate traversal with depth and pagination

Reads are served through the cache layer; every mutation invalidates the
affected cache entries before responding.
"""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from app.api.dependencies import EmployeeServiceDep
from app.core.exceptions import DuplicateEmailError, EmployeeNotFoundError, InvalidManagerError
from app.core.logging import get_logger
from app.models.employee import (
    EmployeeCreate,
    EmployeeRead,
    EmployeeUpdate,
    SubordinatesQuery,
)

logger = get_logger(__name__)

router = APIRouter(
    prefix="/employees",
    tags=["employees"],
    responses={404: {"description": "Employee not found"}},
)


def not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")


def invalid_manager(error: InvalidManagerError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.reason)


def duplicate_email() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="An employee with this email already exists",
    )


@router.post("/", response_model=EmployeeRead, status_code=201)
async def create_employee(
    employee: EmployeeCreate,
    service: EmployeeServiceDep,
):
    """
    Create a new employee.
    """
    logger.info(f"Creating new employee: {employee.first_name} {employee.last_name}")

    try:
        return service.create(employee)
    except DuplicateEmailError:
        raise duplicate_email()
    except InvalidManagerError as e:
        logger.warning(f"Rejected employee creation: {e}")
        raise invalid_manager(e)


@router.get("/", response_model=list[EmployeeRead])
async def list_employees(
    service: EmployeeServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
):
    """
    List employees with page-based pagination, ordered by id.
    """
    logger.info(f"Listing employees: page={page}, limit={limit}")
    return service.find_all(page, limit)


@router.get("/{employee_id}", response_model=EmployeeRead)
async def get_employee(
    employee_id: int,
    service: EmployeeServiceDep,
):
    """
    Get employee by ID.
    """
    logger.info(f"Fetching employee: {employee_id}")

    try:
        return service.find_one(employee_id)
    except EmployeeNotFoundError:
        raise not_found()


@router.put("/{employee_id}", response_model=EmployeeRead)
async def update_employee(
    employee_id: int,
    employee_update: EmployeeUpdate,
    service: EmployeeServiceDep,
):
    """
    Update employee by ID. Only the fields present in the body are changed.
    """
    logger.info(f"Updating employee {employee_id}")

    try:
        return service.update(employee_id, employee_update)
    except EmployeeNotFoundError:
        raise not_found()
    except DuplicateEmailError:
        raise duplicate_email()
    except InvalidManagerError as e:
        logger.warning(f"Rejected update of employee {employee_id}: {e}")
        raise invalid_manager(e)


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: int,
    service: EmployeeServiceDep,
):
    """
    Delete employee by ID. Direct reports are left without a manager.
    """
    logger.info(f"Deleting employee {employee_id}")

    try:
        service.remove(employee_id)
    except EmployeeNotFoundError:
        raise not_found()

    return {"message": "Employee deleted successfully"}


@router.get("/{employee_id}/subordinates", response_model=list[EmployeeRead])
async def get_subordinates(
    employee_id: Annotated[int, Path(ge=1)],
    service: EmployeeServiceDep,
    depth: Annotated[int, Query(ge=-1, description="Levels to retrieve, -1 for all")] = -1,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    """
    Get the subordinates of an employee.

    depth=1 returns direct reports only; depth=-1 returns every level below
    the employee (bounded by the configured hierarchy depth guard).
    """
    logger.info(
        f"Fetching subordinates of {employee_id}: depth={depth}, page={page}, limit={limit}"
    )

    params = SubordinatesQuery(id=employee_id, depth=depth, page=page, limit=limit)
    try:
        return service.find_subordinates(params)
    except EmployeeNotFoundError:
        raise not_found()
