# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from typing import Any

from pydantic import BaseModel, Field

from finetune_stack.providers.utils.cache.config import TieredCacheConfig
from finetune_stack_api import OperationMode

from .mode_selector import ModeThresholds


class FineTuningEngineConfig(BaseModel):
    """Configuration for the fine-tuning orchestrator."""

    operation_mode: OperationMode = Field(
        default=OperationMode.AUTO,
        description="Mode used for requests that prefer 'auto'; 'auto' consults the hardware thresholds",
    )
    mode_thresholds: ModeThresholds = Field(default_factory=ModeThresholds)
    request_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Default deadline for a request; a request's own timeout_seconds wins",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Retries of training and evaluation after a transient ConnectionError or TimeoutError",
    )
    retry_backoff_seconds: float = Field(default=0.5, ge=0, description="Base delay, doubled on each retry")
    deduplicate_in_flight: bool = Field(
        default=True,
        description="Let concurrent requests with the same fingerprint share one pipeline run",
    )
    cache: TieredCacheConfig = Field(default_factory=TieredCacheConfig)

    @classmethod
    def sample_run_config(cls, **kwargs: Any) -> dict[str, Any]:
        return {
            "operation_mode": kwargs.get("operation_mode", OperationMode.AUTO.value),
            "request_timeout_seconds": kwargs.get("request_timeout_seconds", 3600),
            "max_retries": kwargs.get("max_retries", 2),
            "cache": TieredCacheConfig.sample_run_config(**kwargs),
        }
