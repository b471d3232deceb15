"""
Subordinate resolution over the manager-reference forest.

Two strategies produce the same set of subordinates:

- recursive: a single WITH RECURSIVE query, ordered by id and paginated in
  the database (PostgreSQL, MySQL 8).
- iterative: a breadth-first walk over an adjacency map built from a
  (cacheable) snapshot of every (id, manager_id) pair, paginated after the
  walk completes. Results come in discovery order.

Both stop at max_depth levels and never emit the root or an employee twice,
so cyclic manager references terminate.
"""

from collections import deque
from typing import Literal, Optional

from app.core.cache import CacheService
from app.core.cache_keys import HIERARCHY_SNAPSHOT_KEY, HIERARCHY_SNAPSHOT_TTL
from app.core.config import settings
from app.core.logging import get_logger
from app.models.employee import Employee
from app.repositories.employee import EmployeeRepository

logger = get_logger(__name__)

Strategy = Literal["auto", "recursive", "iterative"]

ALL_LEVELS = -1


def build_adjacency(edges: list[list[int | None]]) -> dict[int, list[int]]:
    """Map manager id to its direct reports' ids, preserving edge order."""
    children: dict[int, list[int]] = {}
    for employee_id, manager_id in edges:
        if manager_id is not None:
            children.setdefault(manager_id, []).append(employee_id)
    return children


def walk_subordinates(
    root_id: int,
    children: dict[int, list[int]],
    max_depth: int,
) -> list[int]:
    """
    Breadth-first walk below root_id, returning ids in discovery order.

    Direct reports are level 1; nothing deeper than max_depth is visited.
    """
    visited = {root_id}
    order: list[int] = []
    queue = deque((child_id, 1) for child_id in children.get(root_id, ()))

    while queue:
        employee_id, level = queue.popleft()
        if employee_id in visited:
            continue
        visited.add(employee_id)
        order.append(employee_id)

        if level < max_depth:
            queue.extend((child_id, level + 1) for child_id in children.get(employee_id, ()))

    return order


class HierarchyResolver:
    def __init__(
        self,
        repository: EmployeeRepository,
        cache: Optional[CacheService] = None,
        strategy: Strategy = settings.HIERARCHY_STRATEGY,
        max_depth: int = settings.HIERARCHY_MAX_DEPTH,
    ):
        self.repository = repository
        self.cache = cache
        self.strategy = strategy
        self.max_depth = max_depth

    def uses_recursive_query(self) -> bool:
        if self.strategy == "auto":
            return self.repository.supports_recursive_queries()
        return self.strategy == "recursive"

    def find_subordinates(
        self,
        employee_id: int,
        depth: int = ALL_LEVELS,
        page: int = 1,
        limit: int = 10,
    ) -> list[Employee]:
        """
        Subordinates of employee_id down to depth levels (-1 for all levels).

        The caller is responsible for checking that employee_id exists.
        """
        if depth == 0:
            return []
        if depth == 1:
            return self.find_direct_subordinates(employee_id, page, limit)

        max_depth = self.max_depth if depth == ALL_LEVELS else min(depth, self.max_depth)
        return self.find_all_subordinates_recursive(employee_id, page, limit, max_depth)

    def find_direct_subordinates(
        self,
        employee_id: int,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Employee]:
        if page is None or limit is None:
            return self.repository.find_by_manager_id(employee_id)
        offset = (page - 1) * limit
        return self.repository.find_by_manager_id(employee_id, offset=offset, limit=limit)

    def find_all_subordinates_recursive(
        self,
        employee_id: int,
        page: int = 1,
        limit: int = 20,
        max_depth: Optional[int] = None,
    ) -> list[Employee]:
        max_depth = max_depth or self.max_depth
        offset = (page - 1) * limit

        if self.uses_recursive_query():
            return self.repository.run_recursive_query(employee_id, max_depth, offset, limit)

        children = build_adjacency(self._load_hierarchy())
        ordered_ids = walk_subordinates(employee_id, children, max_depth)
        page_ids = ordered_ids[offset : offset + limit]

        records = self.repository.find_by_ids(page_ids)
        # Records deleted after the snapshot was taken are skipped
        return [records[i] for i in page_ids if i in records]

    def _load_hierarchy(self) -> list[list[int | None]]:
        """Every [id, manager_id] pair, ordered by id."""
        if self.cache is not None:
            cached = self.cache.get(HIERARCHY_SNAPSHOT_KEY)
            if cached is not None:
                return cached

        edges = [[emp.id, emp.manager_id] for emp in self.repository.find_all()]
        logger.debug(f"Loaded hierarchy snapshot with {len(edges)} employee(s)")

        if self.cache is not None:
            self.cache.set(HIERARCHY_SNAPSHOT_KEY, edges, ttl=HIERARCHY_SNAPSHOT_TTL)
        return edges
