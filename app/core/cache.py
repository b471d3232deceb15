"""
Dual-layer cache for the Organogram Service.

A shared Redis tier is authoritative while reachable; an in-process tier
serves as accelerator and fallback. The two tiers are independent stores,
not replicas: nothing keeps them consistent beyond the writes and
invalidations issued through CacheService.
"""

import fnmatch
import json
import threading
import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

import redis
from redis import Redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.retry import Retry

from app.core.config import Settings, settings
from app.core.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class RedisClient:
    """Builds the redis-py client used by the remote tier."""

    @staticmethod
    def create(
        config: Settings = settings,
        on_connect: Optional[Callable[[Any], None]] = None,
    ) -> Redis:
        client = redis.Redis(
            host=config.REDIS_HOST,
            port=config.REDIS_PORT,
            password=config.REDIS_PASSWORD if config.REDIS_PASSWORD else None,
            db=config.REDIS_DB,
            decode_responses=True,
            socket_timeout=config.REDIS_COMMAND_TIMEOUT,
            socket_connect_timeout=config.REDIS_CONNECT_TIMEOUT,
            # A command that hits socket_timeout is a remote failure, not retried
            retry=Retry(
                ExponentialBackoff(cap=3, base=0.1),
                config.REDIS_MAX_RETRIES,
                supported_errors=(RedisConnectionError,),
            ),
            retry_on_error=[RedisConnectionError],
            client_name="organogram-api",
            redis_connect_func=on_connect,
        )
        logger.info(f"Redis client configured for {config.REDIS_HOST}:{config.REDIS_PORT}")
        return client


def get_cache_key(prefix: str, identifier: str | int) -> str:
    return f"{prefix}:{identifier}"


def json_serializer(obj):
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    raise TypeError(f"Type {type(obj)} not serializable")


@dataclass
class LocalEntry:
    value: str
    expires_at: Optional[float] = None


class LocalCache:
    """
    In-process key-value tier.

    Entries are never swept; expiry is checked lazily on read.
    """

    def __init__(self, clock: Clock = time.monotonic):
        self._entries: dict[str, LocalEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: str, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl if ttl else None
        with self._lock:
            self._entries[key] = LocalEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_matching(self, pattern: str) -> int:
        """Delete keys matching a Redis-style glob pattern. Returns the count."""
        with self._lock:
            matched = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for key in matched:
                del self._entries[key]
        return len(matched)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheService:
    """
    Cache facade over the remote (Redis) and local (in-process) tiers.

    Remote failures never surface to callers: they clear the reachability
    flag and the operation continues against the local tier. While the flag
    is clear, remote calls are skipped except for a PING probe issued at
    most once per reconnect_interval.
    """

    def __init__(
        self,
        client: Optional[Redis] = None,
        key_prefix: str = settings.CACHE_KEY_PREFIX,
        local: Optional[LocalCache] = None,
        reconnect_interval: float = settings.REDIS_RECONNECT_INTERVAL,
        clock: Clock = time.monotonic,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.local = local if local is not None else LocalCache(clock=clock)
        self.reconnect_interval = reconnect_interval
        self._clock = clock
        self._connected = False
        self._last_probe: Optional[float] = None

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "CacheService":
        cache = cls(
            key_prefix=config.CACHE_KEY_PREFIX,
            reconnect_interval=config.REDIS_RECONNECT_INTERVAL,
        )
        if config.REDIS_ENABLED:
            cache.client = RedisClient.create(config, on_connect=cache.handle_connect)
        else:
            logger.info("Redis disabled, using in-memory cache only")
        return cache

    # -- connection state ---------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self._connected

    def connect(self) -> bool:
        """Verify the remote tier. Returns whether Redis is reachable."""
        if self.client is None:
            logger.warning("Redis client not initialized. Using in-memory cache.")
            return False
        self._last_probe = self._clock()
        try:
            self.client.ping()
        except RedisError as e:
            self._connected = False
            logger.warning(f"Redis unavailable: {e}")
            logger.warning("Using in-memory cache as fallback")
            return False
        self._mark_connected()
        logger.info("Redis connection verified")
        return True

    def handle_connect(self, connection) -> None:
        """redis-py connect callback, invoked for every new socket."""
        connection.on_connect()
        self._mark_connected()

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
        self._connected = False

    def _mark_connected(self) -> None:
        if not self._connected:
            logger.info("Successfully connected to Redis")
        self._connected = True

    def _handle_remote_error(self, operation: str, error: RedisError) -> None:
        if self._connected:
            self._connected = False
            logger.warning(f"Redis {operation} failed: {error}")
            logger.warning("Using in-memory cache as fallback")
        else:
            logger.debug(f"Redis {operation} failed: {error}")

    def _remote(self) -> Optional[Redis]:
        """Return the client if the remote tier should be used for this call."""
        if self.client is None:
            return None
        if self._connected:
            return self.client
        now = self._clock()
        if self._last_probe is not None and now - self._last_probe < self.reconnect_interval:
            return None
        self._last_probe = now
        try:
            self.client.ping()
        except RedisError as e:
            logger.debug(f"Redis still unavailable: {e}")
            return None
        self._mark_connected()
        return self.client

    def _full_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    # -- operations -----------------------------------------------------------

    def get(self, key: str) -> Any | None:
        full_key = self._full_key(key)

        data = self.local.get(full_key)
        if data is None:
            data = self._get_remote(full_key)
        if data is None:
            return None

        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed cache entry {full_key}: {e}")
            self.delete(key)
            return None

    def _get_remote(self, full_key: str) -> Optional[str]:
        client = self._remote()
        if client is None:
            return None
        try:
            data = client.get(full_key)
            if data is None:
                return None
            remaining_ms = client.pttl(full_key)
        except RedisError as e:
            self._handle_remote_error("get", e)
            return None

        ttl = remaining_ms / 1000 if remaining_ms and remaining_ms > 0 else None
        self.local.set(full_key, data, ttl)
        return data

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        full_key = self._full_key(key)
        serialized = json.dumps(value, default=json_serializer)

        client = self._remote()
        if client is not None:
            try:
                if ttl:
                    client.psetex(full_key, int(ttl * 1000), serialized)
                else:
                    client.set(full_key, serialized)
            except RedisError as e:
                self._handle_remote_error("set", e)

        self.local.set(full_key, serialized, ttl)

    def delete(self, key: str) -> None:
        full_key = self._full_key(key)

        client = self._remote()
        if client is not None:
            try:
                logger.debug(f"Deleting Redis key: {full_key}")
                client.delete(full_key)
            except RedisError as e:
                self._handle_remote_error("delete", e)

        self.local.delete(full_key)

    def invalidate_by_pattern(self, pattern: str) -> None:
        """Delete every key starting with pattern (glob '*' allowed inside)."""
        full_pattern = f"{self.key_prefix}{pattern}*"

        client = self._remote()
        if client is not None:
            try:
                keys = client.keys(full_pattern)
                if keys:
                    client.delete(*keys)
                    logger.debug(f"Deleted {len(keys)} Redis keys for {full_pattern}")
            except RedisError as e:
                self._handle_remote_error("pattern delete", e)

        count = self.local.delete_matching(full_pattern)
        if count:
            logger.debug(f"Deleted {count} in-memory cache keys for {full_pattern}")

    def get_status(self) -> dict[str, Any]:
        connected = self.is_connected
        return {
            "connected": connected,
            "tier": "remote" if connected else "local",
            "local_size": len(self.local),
        }
