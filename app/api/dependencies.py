"""
FastAPI dependencies shared by the routers.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlmodel import Session

from app.core.cache import CacheService
from app.core.database import get_session
from app.repositories.employee import EmployeeRepository
from app.services.employee import EmployeeService

SessionDep = Annotated[Session, Depends(get_session)]


def get_cache(request: Request) -> CacheService:
    """The CacheService owned by the running application."""
    return request.app.state.cache


CacheDep = Annotated[CacheService, Depends(get_cache)]


def get_employee_service(session: SessionDep, cache: CacheDep) -> EmployeeService:
    return EmployeeService(EmployeeRepository(session), cache)


EmployeeServiceDep = Annotated[EmployeeService, Depends(get_employee_service)]
