# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Cache utilities for the fine-tuning result cache.

Example usage:
    from finetune_stack.providers.utils.cache import TieredCacheConfig, TieredResultCache

    cache = TieredResultCache(TieredCacheConfig())
    await cache.set(fingerprint, result)
"""

from .cache_store import CacheError, CacheStore, CircuitBreaker
from .config import CacheTierConfig, TieredCacheConfig
from .memory import MemoryCacheStore
from .tiered import TieredResultCache

__all__ = [
    "CacheStore",
    "CacheError",
    "CacheTierConfig",
    "CircuitBreaker",
    "MemoryCacheStore",
    "TieredCacheConfig",
    "TieredResultCache",
]
