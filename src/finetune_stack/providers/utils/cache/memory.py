# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""In-memory cache tier using cachetools."""

import time
from typing import Any, Literal

from cachetools import Cache, LFUCache, LRUCache  # type: ignore # no types-cachetools available

from finetune_stack.log import get_logger

from .cache_store import CacheError

logger = get_logger(__name__, category="cache")


EvictionPolicy = Literal["lru", "lfu"]


class MemoryCacheStore:
    """One in-memory retention tier with a bounded size and per-entry TTL.

    The store never evicts silently on its own when used through the tiered
    cache: callers check `is_full()` and take the next victim with
    `pop_eviction_candidate()` so it can be demoted to a colder tier.

    Example:
        tier = MemoryCacheStore(name="hot", max_entries=20, default_ttl=300)
        await tier.set("key", result)
        value = await tier.get("key")
    """

    def __init__(
        self,
        name: str = "default",
        max_entries: int = 100,
        default_ttl: int = 600,
        eviction_policy: EvictionPolicy = "lru",
    ):
        """Initialize a memory tier.

        Args:
            name: Tier name used in logs and stats
            max_entries: Maximum number of entries to hold
            default_ttl: Default time-to-live in seconds
            eviction_policy: Which entry goes first when full ("lru" or "lfu")

        Raises:
            ValueError: If invalid parameters provided
        """
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        self.name = name
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self.eviction_policy = eviction_policy

        self._cache: Cache = self._create_cache()
        self._expires_at: dict[str, float] = {}

        logger.debug(
            f"Initialized cache tier '{name}': policy={eviction_policy}, "
            f"max_entries={max_entries}, default_ttl={default_ttl}s"
        )

    def _create_cache(self) -> Cache:
        if self.eviction_policy == "lru":
            return LRUCache(maxsize=self.max_entries)
        elif self.eviction_policy == "lfu":
            return LFUCache(maxsize=self.max_entries)
        else:
            raise ValueError(f"Unknown eviction policy: {self.eviction_policy}")

    def _is_expired(self, key: str) -> bool:
        """Drop the entry and return True if its TTL has elapsed."""
        expires_at = self._expires_at.get(key)
        if expires_at is None:
            return False
        if time.time() >= expires_at:
            self._cache.pop(key, None)
            self._expires_at.pop(key, None)
            return True
        return False

    def _purge_expired(self) -> None:
        for key in list(self._expires_at):
            self._is_expired(key)

    async def get(self, key: str) -> Any | None:
        try:
            if self._is_expired(key):
                return None
            return self._cache.get(key)
        except Exception as e:
            logger.error(f"Failed to get key '{key}' from tier '{self.name}': {e}")
            raise CacheError(f"Failed to get cache key '{key}'", cause=e) from e

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        try:
            effective_ttl = ttl if ttl is not None else self.default_ttl
            self._cache[key] = value
            self._expires_at[key] = time.time() + effective_ttl
            # cachetools may have evicted on insert; forget expirations of entries it dropped
            if len(self._expires_at) > len(self._cache):
                for stale in [k for k in self._expires_at if k not in self._cache]:
                    self._expires_at.pop(stale, None)
            logger.debug(f"Tier '{self.name}' set: {key} (ttl={effective_ttl}s)")
        except Exception as e:
            logger.error(f"Failed to set key '{key}' in tier '{self.name}': {e}")
            raise CacheError(f"Failed to set cache key '{key}'", cause=e) from e

    async def delete(self, key: str) -> bool:
        try:
            existed = key in self._cache
            self._cache.pop(key, None)
            self._expires_at.pop(key, None)
            return existed
        except Exception as e:
            logger.error(f"Failed to delete key '{key}' from tier '{self.name}': {e}")
            raise CacheError(f"Failed to delete cache key '{key}'", cause=e) from e

    async def exists(self, key: str) -> bool:
        if self._is_expired(key):
            return False
        return key in self._cache

    async def keys(self) -> list[str]:
        self._purge_expired()
        return list(self._cache.keys())

    async def clear(self) -> None:
        self._cache.clear()
        self._expires_at.clear()

    async def size(self) -> int:
        self._purge_expired()
        return len(self._cache)

    def is_full(self) -> bool:
        self._purge_expired()
        return len(self._cache) >= self.max_entries

    def pop_eviction_candidate(self) -> tuple[str, Any] | None:
        """Remove and return the entry the eviction policy would drop next."""
        self._purge_expired()
        if not self._cache:
            return None
        key, value = self._cache.popitem()
        self._expires_at.pop(key, None)
        return key, value

    def get_stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "size": len(self._cache),
            "max_entries": self.max_entries,
            "default_ttl": self.default_ttl,
            "eviction_policy": self.eviction_policy,
        }
