"""
Cache key naming and TTL policy.

Key formats are shared with other deployments of the service and must
stay byte-for-byte stable. The namespace prefix is added by CacheService.
"""

from app.core.cache import get_cache_key
from app.core.config import settings

EMPLOYEE_PREFIX = "employee"
ALL_EMPLOYEES_PREFIX = "all_employees"
SUBORDINATES_PREFIX = "subordinates"

# Manager-reference snapshot used by the iterative hierarchy traversal.
# Shares the all_employees prefix so list invalidation also drops it.
HIERARCHY_SNAPSHOT_KEY = "all_employees_for_subordinates"

EMPLOYEE_TTL = settings.CACHE_TTL
EMPLOYEE_LIST_TTL = settings.EMPLOYEE_LIST_CACHE_TTL
SUBORDINATES_TTL = settings.SUBORDINATES_CACHE_TTL
HIERARCHY_SNAPSHOT_TTL = settings.HIERARCHY_SNAPSHOT_TTL


def employee_key(employee_id: int) -> str:
    return get_cache_key(EMPLOYEE_PREFIX, employee_id)


def all_employees_key(page: int, limit: int) -> str:
    return f"{ALL_EMPLOYEES_PREFIX}:page:{page}:limit:{limit}"


def subordinates_key(employee_id: int, depth: int, page: int, limit: int) -> str:
    return f"{SUBORDINATES_PREFIX}:{employee_id}:depth:{depth}:page:{page}:limit:{limit}"


def subordinates_pattern(employee_id: int | None = None) -> str:
    """Prefix matching cached traversals of one root, or of every root."""
    if employee_id is None:
        return f"{SUBORDINATES_PREFIX}:"
    return f"{SUBORDINATES_PREFIX}:{employee_id}:"
