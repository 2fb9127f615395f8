# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Tiered result cache for completed fine-tuning results.

Tiers differ only by size and retention window. Writes land in the hottest
tier; when a tier is full its eviction candidate is demoted to the next tier,
and a hit in a colder tier promotes the entry back to the hottest one.
"""

import asyncio
from typing import Any

from finetune_stack.log import get_logger
from finetune_stack_api import FineTuningResult

from .config import TieredCacheConfig
from .memory import MemoryCacheStore

logger = get_logger(__name__, category="cache")


class TieredResultCache:
    """Default ResultCache implementation built from MemoryCacheStore tiers.

    A single asyncio lock serializes operations so reads and writes of a key
    are atomic with respect to concurrent requests, including promotion and
    demotion between tiers.
    """

    def __init__(self, config: TieredCacheConfig | None = None):
        self.config = config or TieredCacheConfig()
        self.tiers = [
            MemoryCacheStore(
                name=tier.name,
                max_entries=tier.max_entries,
                default_ttl=tier.ttl_seconds,
                eviction_policy=tier.eviction_policy,
            )
            for tier in self.config.tiers
        ]
        self._lock = asyncio.Lock()

    async def _insert(self, level: int, key: str, value: FineTuningResult) -> None:
        tier = self.tiers[level]
        if tier.is_full():
            victim = tier.pop_eviction_candidate()
            if victim is not None:
                victim_key, victim_value = victim
                if level + 1 < len(self.tiers):
                    logger.debug(f"Demoting {victim_key} from '{tier.name}' to '{self.tiers[level + 1].name}'")
                    await self._insert(level + 1, victim_key, victim_value)
                else:
                    logger.debug(f"Evicting {victim_key} from last tier '{tier.name}'")
        await tier.set(key, value)

    async def get(self, key: str) -> FineTuningResult | None:
        async with self._lock:
            for level, tier in enumerate(self.tiers):
                value = await tier.get(key)
                if value is None:
                    continue
                if level > 0:
                    await tier.delete(key)
                    await self._insert(0, key, value)
                    logger.debug(f"Promoted {key} from '{tier.name}' to '{self.tiers[0].name}'")
                return value
            return None

    async def set(self, key: str, value: FineTuningResult) -> None:
        async with self._lock:
            for tier in self.tiers:
                await tier.delete(key)
            await self._insert(0, key, value)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            deleted = False
            for tier in self.tiers:
                deleted = await tier.delete(key) or deleted
            return deleted

    async def list_keys(self) -> list[str]:
        async with self._lock:
            keys: list[str] = []
            for tier in self.tiers:
                keys.extend(k for k in await tier.keys() if k not in keys)
            return keys

    async def clear(self) -> None:
        async with self._lock:
            for tier in self.tiers:
                await tier.clear()
        logger.info("Fine-tuning result cache cleared")

    async def tier_of(self, key: str) -> str | None:
        """Name of the tier currently holding `key`, without promoting it."""
        async with self._lock:
            for tier in self.tiers:
                if await tier.exists(key):
                    return tier.name
            return None

    def get_stats(self) -> dict[str, Any]:
        return {"tiers": [tier.get_stats() for tier in self.tiers]}
