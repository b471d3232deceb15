"""
Organogram Service Core Module.

Exports core utilities and configurations.
"""

from app.core.cache import (
    CacheService,
    LocalCache,
    RedisClient,
    get_cache_key,
    json_serializer,
)
from app.core.config import settings
from app.core.exceptions import (
    DuplicateEmailError,
    EmployeeNotFoundError,
    InvalidManagerError,
)

__all__ = [
    # Config
    "settings",
    # Cache
    "CacheService",
    "LocalCache",
    "RedisClient",
    "get_cache_key",
    "json_serializer",
    # Errors
    "DuplicateEmailError",
    "EmployeeNotFoundError",
    "InvalidManagerError",
]
