"""
Data access for employee records.

All queries against the employees table go through EmployeeRepository,
including the recursive CTE used for subordinate resolution.
"""

from typing import Any, Optional

from sqlalchemy import literal
from sqlalchemy import select as sa_select
from sqlalchemy import update as sa_update
from sqlalchemy.orm import aliased
from sqlmodel import Session, col, select

from app.core.database import supports_recursive_queries
from app.models.employee import Employee, utc_now


class EmployeeRepository:
    def __init__(self, session: Session):
        self.session = session

    def supports_recursive_queries(self) -> bool:
        return supports_recursive_queries(self.session.get_bind())

    # Reads

    def find_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.session.get(Employee, employee_id)

    def find_by_email(self, email: str) -> Optional[Employee]:
        return self.session.exec(select(Employee).where(Employee.email == email)).first()

    def find_by_ids(self, employee_ids: list[int]) -> dict[int, Employee]:
        if not employee_ids:
            return {}
        statement = select(Employee).where(col(Employee.id).in_(employee_ids))
        return {emp.id: emp for emp in self.session.exec(statement).all()}

    def find_by_manager_id(
        self,
        manager_id: int,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Employee]:
        statement = (
            select(Employee)
            .where(Employee.manager_id == manager_id)
            .order_by(col(Employee.id))
            .offset(offset)
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def find_all(self) -> list[Employee]:
        return list(self.session.exec(select(Employee).order_by(col(Employee.id))).all())

    def find_page(self, page: int = 1, limit: int = 50) -> list[Employee]:
        offset = (page - 1) * limit
        statement = select(Employee).order_by(col(Employee.id)).offset(offset).limit(limit)
        return list(self.session.exec(statement).all())

    def run_recursive_query(
        self,
        root_id: int,
        max_depth: int,
        offset: int,
        limit: int,
    ) -> list[Employee]:
        """
        Resolve subordinates of root_id with a single WITH RECURSIVE query.

        The CTE starts from direct reports (depth 1) and follows manager
        references down to max_depth levels. Ids are deduplicated through the
        IN subquery and the root is excluded, so cyclic data still yields a
        plain set. Results are ordered by id and paginated in the database.
        """
        tree = (
            sa_select(col(Employee.id).label("id"), literal(1).label("depth"))
            .where(Employee.manager_id == root_id)
            .cte("subordinates", recursive=True)
        )
        child = aliased(Employee, name="child")
        tree = tree.union_all(
            sa_select(child.id, tree.c.depth + 1)
            .where(child.manager_id == tree.c.id)
            .where(tree.c.depth < max_depth)
        )

        statement = (
            select(Employee)
            .where(col(Employee.id).in_(sa_select(tree.c.id)))
            .where(Employee.id != root_id)
            .order_by(col(Employee.id))
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    # Writes

    def create(self, data: dict[str, Any]) -> Employee:
        employee = Employee(**data)
        self.session.add(employee)
        self.session.commit()
        self.session.refresh(employee)
        return employee

    def update(self, employee: Employee, data: dict[str, Any]) -> Employee:
        for key, value in data.items():
            setattr(employee, key, value)
        employee.updated_at = utc_now()
        self.session.add(employee)
        self.session.commit()
        self.session.refresh(employee)
        return employee

    def detach_subordinates(self, manager_id: int) -> None:
        """Clear the manager reference of every direct report of manager_id."""
        self.session.execute(
            sa_update(Employee)
            .where(Employee.manager_id == manager_id)
            .values(manager_id=None, updated_at=utc_now())
        )

    def delete(self, employee: Employee) -> None:
        self.detach_subordinates(employee.id)
        self.session.delete(employee)
        self.session.commit()
