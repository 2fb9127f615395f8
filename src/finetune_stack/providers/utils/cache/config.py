# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .memory import EvictionPolicy


class CacheTierConfig(BaseModel):
    """One retention tier of the result cache."""

    name: str
    max_entries: int = Field(gt=0)
    ttl_seconds: int = Field(gt=0)
    eviction_policy: EvictionPolicy = "lru"


def _default_tiers() -> list[CacheTierConfig]:
    return [
        CacheTierConfig(name="hot", max_entries=20, ttl_seconds=300),
        CacheTierConfig(name="warm", max_entries=50, ttl_seconds=1800),
        CacheTierConfig(name="cold", max_entries=100, ttl_seconds=7200),
    ]


class TieredCacheConfig(BaseModel):
    """Configuration for the tiered fine-tuning result cache.

    Tiers are ordered hottest first. New results land in the first tier and
    are demoted one tier at a time as hotter tiers fill up.
    """

    tiers: list[CacheTierConfig] = Field(default_factory=_default_tiers)
    breaker_failure_threshold: int = Field(default=5, gt=0)
    breaker_recovery_timeout: float = Field(default=30.0, gt=0)

    @field_validator("tiers")
    @classmethod
    def validate_tiers(cls, v: list[CacheTierConfig]) -> list[CacheTierConfig]:
        if not v:
            raise ValueError("at least one cache tier is required")
        names = [tier.name for tier in v]
        if len(set(names)) != len(names):
            raise ValueError("cache tier names must be unique")
        return v

    @classmethod
    def sample_run_config(cls, **kwargs) -> dict[str, Any]:
        return {
            "tiers": [tier.model_dump() for tier in _default_tiers()],
            "breaker_failure_threshold": kwargs.get("breaker_failure_threshold", 5),
            "breaker_recovery_timeout": kwargs.get("breaker_recovery_timeout", 30.0),
        }
