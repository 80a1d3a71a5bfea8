"""
Position Cache

Short-TTL memoisation of the assembled "current state" response per
satellite, so that many viewers polling every few seconds share one
computation.

Contract:
    An entry is valid while now - computed_at < ttl. A hit returns a copy of
    the stored response with only the outer timestamp refreshed and
    cached=True. A miss recomputes outside any lock and overwrites the entry.
    Concurrent misses for the same key may both compute; the last write wins.
    Entries are never evicted explicitly.
"""

import copy
import json
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

import redis
from pydantic import ValidationError

from config import POSITION_CACHE_TTL_SECONDS
from logging_config import get_logger
from tracking_service.models import CacheEntry

logger = get_logger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        pass

    @abstractmethod
    def set(self, entry: CacheEntry) -> None:
        pass


class InMemoryStore(KeyValueStore):
    """Process-local store guarded by one coarse lock."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def set(self, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def __len__(self):
        with self._lock:
            return len(self._entries)


class RedisStore(KeyValueStore):
    """
    Store shared between worker processes through Redis.

    Redis failures degrade to cache misses and skipped writes. A stored
    value that no longer decodes as a CacheEntry is also a miss; the next
    write replaces it.
    """

    KEY_PREFIX = "position_cache:"

    def __init__(self, client: "redis.Redis", expire_seconds: int = 60):
        self.client = client
        self.expire_seconds = expire_seconds

    @classmethod
    def from_url(cls, url: str, expire_seconds: int = 60) -> "RedisStore":
        return cls(redis.from_url(url, decode_responses=True), expire_seconds)

    def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = self.client.get(self.KEY_PREFIX + key)
        except redis.exceptions.RedisError as e:
            logger.warning("position_cache_read_failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning("position_cache_entry_invalid", key=key, error=str(e))
            return None

    def set(self, entry: CacheEntry) -> None:
        try:
            self.client.setex(
                self.KEY_PREFIX + entry.key, self.expire_seconds, entry.model_dump_json()
            )
        except redis.exceptions.RedisError as e:
            logger.warning("position_cache_write_failed", key=entry.key, error=str(e))


class PositionCache:
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        ttl_seconds: float = POSITION_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store if store is not None else InMemoryStore()
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def get_cached_current_state(
        self, satellite_key: str, compute_fn: Callable[[], Dict[str, Any]]
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Return (response, cached) for satellite_key.

        compute_fn builds the full response; it runs only on a miss and any
        exception it raises propagates without touching the store.
        """
        now = self.clock()
        entry = self.store.get(satellite_key)

        if entry is not None and now - entry.computed_at < self.ttl_seconds:
            response = copy.deepcopy(entry.response)
            response["timestamp"] = _isoformat(now)
            response["cached"] = True
            return response, True

        response = compute_fn()
        response["cached"] = False
        self.store.set(CacheEntry(key=satellite_key, computed_at=now, response=response))
        logger.debug("position_cache_miss", key=satellite_key)
        return copy.deepcopy(response), False


def _isoformat(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat().replace("+00:00", "Z")
