"""Tests for subordinate resolution (recursive CTE and iterative BFS)."""

import pytest

from app.core.cache_keys import HIERARCHY_SNAPSHOT_KEY
from app.services.hierarchy import HierarchyResolver, build_adjacency, walk_subordinates

STRATEGIES = ["recursive", "iterative"]


def ids(employees):
    return [emp.id for emp in employees]


@pytest.fixture
def resolver_for(repository, cache):
    def _make(strategy: str, max_depth: int = 10) -> HierarchyResolver:
        return HierarchyResolver(repository, cache, strategy=strategy, max_depth=max_depth)

    return _make


class TestWalkSubordinates:
    def test_discovery_order_is_breadth_first(self):
        children = build_adjacency([[1, None], [2, 1], [3, 1], [4, 2], [5, 3]])
        assert walk_subordinates(1, children, max_depth=10) == [2, 3, 4, 5]

    def test_depth_bound(self):
        children = build_adjacency([[1, None], [2, 1], [3, 2], [4, 3]])
        assert walk_subordinates(1, children, max_depth=2) == [2, 3]

    def test_cycle_terminates_and_excludes_root(self):
        children = build_adjacency([[1, 2], [2, 1]])
        assert walk_subordinates(1, children, max_depth=10) == [2]

    def test_leaf_has_no_subordinates(self):
        children = build_adjacency([[1, None], [2, 1]])
        assert walk_subordinates(2, children, max_depth=10) == []


class TestHierarchyResolver:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_full_closure(self, org, resolver_for, strategy):
        resolver = resolver_for(strategy)
        assert set(ids(resolver.find_subordinates(1, depth=-1))) == {2, 3, 4, 5}

    def test_strategies_return_identical_sets(self, org, resolver_for):
        for root in (1, 2, 4, 5, 6):
            recursive = resolver_for("recursive").find_all_subordinates_recursive(root, 1, 100)
            iterative = resolver_for("iterative").find_all_subordinates_recursive(root, 1, 100)
            assert set(ids(recursive)) == set(ids(iterative))

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_direct_only(self, org, resolver_for, strategy):
        resolver = resolver_for(strategy)
        assert ids(resolver.find_subordinates(1, depth=1)) == [2, 3]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_depth_two_truncates(self, org, resolver_for, strategy):
        resolver = resolver_for(strategy)
        assert set(ids(resolver.find_subordinates(1, depth=2))) == {2, 3, 4}

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_depth_zero_is_empty(self, org, resolver_for, strategy):
        assert resolver_for(strategy).find_subordinates(1, depth=0) == []

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_employee_without_reports(self, org, resolver_for, strategy):
        assert resolver_for(strategy).find_subordinates(3, depth=-1) == []

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_pagination_page_two(self, add_employee, resolver_for, strategy):
        add_employee(1)
        for employee_id in range(2, 27):
            add_employee(employee_id, manager_id=1)

        resolver = resolver_for(strategy)
        page = resolver.find_subordinates(1, depth=-1, page=2, limit=10)

        # Subordinates ranked 11-20 are ids 12..21
        assert ids(page) == list(range(12, 22))

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_pagination_past_the_end(self, org, resolver_for, strategy):
        assert resolver_for(strategy).find_subordinates(1, depth=-1, page=3, limit=10) == []

    def test_direct_pagination(self, add_employee, resolver_for):
        add_employee(1)
        for employee_id in range(2, 27):
            add_employee(employee_id, manager_id=1)

        page = resolver_for("iterative").find_subordinates(1, depth=1, page=3, limit=10)

        assert ids(page) == list(range(22, 27))

    def test_recursive_query_orders_by_id(self, add_employee, resolver_for):
        add_employee(1)
        add_employee(9, manager_id=1)
        add_employee(3, manager_id=9)
        add_employee(5, manager_id=1)

        result = resolver_for("recursive").find_subordinates(1, depth=-1)

        assert ids(result) == [3, 5, 9]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_cycle_terminates(self, session, add_employee, resolver_for, strategy):
        first = add_employee(1)
        add_employee(2, manager_id=1)
        first.manager_id = 2
        session.add(first)
        session.commit()

        result = resolver_for(strategy).find_all_subordinates_recursive(1, 1, 10)

        assert ids(result) == [2]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_depth_guard_truncates_long_chains(self, add_employee, resolver_for, strategy):
        add_employee(1)
        for employee_id in range(2, 17):
            add_employee(employee_id, manager_id=employee_id - 1)

        guarded = resolver_for(strategy, max_depth=10).find_subordinates(1, depth=-1, limit=100)
        unguarded = resolver_for(strategy, max_depth=20).find_subordinates(1, depth=-1, limit=100)

        assert set(ids(guarded)) == set(range(2, 12))
        assert set(ids(unguarded)) == set(range(2, 17))

    def test_auto_strategy_on_sqlite_is_iterative(self, repository, cache):
        resolver = HierarchyResolver(repository, cache, strategy="auto")
        assert resolver.uses_recursive_query() is False

    def test_iterative_snapshot_is_cached(self, org, repository, cache, resolver_for, mocker):
        resolver = resolver_for("iterative")
        spy = mocker.spy(repository, "find_all")

        resolver.find_subordinates(1, depth=-1)
        resolver.find_subordinates(2, depth=-1)

        assert spy.call_count == 1
        assert cache.get(HIERARCHY_SNAPSHOT_KEY) == [
            [1, None], [2, 1], [3, 1], [4, 2], [5, 4], [6, None], [7, 6],
        ]

    def test_iterative_without_cache(self, org, repository):
        resolver = HierarchyResolver(repository, None, strategy="iterative")
        assert set(ids(resolver.find_subordinates(6, depth=-1))) == {7}

    def test_iterative_skips_records_deleted_after_snapshot(
        self, org, session, repository, resolver_for
    ):
        resolver = resolver_for("iterative")
        resolver.find_subordinates(1, depth=-1)

        session.delete(repository.find_by_id(5))
        session.commit()

        assert ids(resolver.find_subordinates(1, depth=-1)) == [2, 3, 4]
