"""
Pytest configuration and shared fixtures.

Each test gets its own in-memory SQLite database and a CacheService whose
remote tier is a dict-backed Redis double that can be taken offline.
"""

import fnmatch
import os

# Settings are read at import time; configure before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.api.dependencies import get_cache
from app.core.cache import CacheService
from app.core.database import get_session
from app.main import app
from app.models.employee import Employee
from app.repositories.employee import EmployeeRepository


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """
    Dict-backed stand-in for the subset of redis.Redis the cache uses.

    Setting available = False makes every command raise ConnectionError,
    the way redis-py does when the server is unreachable.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.store: dict[str, tuple[str, float | None]] = {}
        self.available = True
        self.commands: list[str] = []

    def _command(self, name: str) -> None:
        self.commands.append(name)
        if not self.available:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def _live(self, key: str):
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self.clock():
            del self.store[key]
            return None
        return entry

    def ping(self):
        self._command("ping")
        return True

    def get(self, key):
        self._command("get")
        entry = self._live(key)
        return entry[0] if entry else None

    def pttl(self, key):
        self._command("pttl")
        entry = self._live(key)
        if entry is None:
            return -2
        if entry[1] is None:
            return -1
        return int((entry[1] - self.clock()) * 1000)

    def set(self, key, value):
        self._command("set")
        self.store[key] = (value, None)
        return True

    def psetex(self, key, ttl_ms, value):
        self._command("psetex")
        self.store[key] = (value, self.clock() + ttl_ms / 1000)
        return True

    def delete(self, *keys):
        self._command("delete")
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    def keys(self, pattern):
        self._command("keys")
        return [key for key in list(self.store) if self._live(key) and fnmatch.fnmatchcase(key, pattern)]

    def close(self):
        pass


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def cache(fake_redis, clock) -> CacheService:
    """CacheService with a reachable remote tier."""
    service = CacheService(client=fake_redis, key_prefix="app::", reconnect_interval=5.0, clock=clock)
    service.connect()
    return service


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repository(session) -> EmployeeRepository:
    return EmployeeRepository(session)


@pytest.fixture
def add_employee(session):
    """Insert an employee row directly, bypassing the service."""

    def _add(employee_id: int, manager_id: int | None = None, **fields) -> Employee:
        employee = Employee(
            id=employee_id,
            first_name=fields.pop("first_name", f"First{employee_id}"),
            last_name=fields.pop("last_name", f"Last{employee_id}"),
            position=fields.pop("position", "Engineer"),
            manager_id=manager_id,
            **fields,
        )
        session.add(employee)
        session.commit()
        session.refresh(employee)
        return employee

    return _add


@pytest.fixture
def org(add_employee):
    """
    1 -> 2 -> 4 -> 5
    1 -> 3
    6 -> 7        (separate tree)
    """
    add_employee(1)
    add_employee(2, manager_id=1)
    add_employee(3, manager_id=1)
    add_employee(4, manager_id=2)
    add_employee(5, manager_id=4)
    add_employee(6)
    add_employee(7, manager_id=6)


@pytest.fixture
def client(engine, cache):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()
