# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from typing import Protocol, runtime_checkable

from .models import (
    FineTuningRequest,
    FineTuningResult,
    ModelInfo,
    ModelListFilters,
    OperationMode,
    RegisteredModel,
)


@runtime_checkable
class FineTuning(Protocol):
    """Fine-tuning orchestration protocol.

    Produces specialized models, reusing registered models and cached results
    where possible.
    """

    async def fine_tune_model(self, request: FineTuningRequest) -> FineTuningResult:
        """Fine-tune a model for the request, or reuse an existing one.

        Expected failures are reported in the returned result. Deployment
        failures are raised as DeploymentError after registration.
        """
        ...

    def set_operation_mode(self, mode: OperationMode) -> None:
        """Pin the execution mode used for requests that prefer `auto`."""
        ...

    async def get_model_info(self, model_id: str) -> ModelInfo:
        """Retrieve a registered model with its serving performance."""
        ...

    async def list_models(self, filters: ModelListFilters | None = None) -> list[RegisteredModel]:
        """List registered models matching the filters."""
        ...

    async def delete_model(self, model_id: str) -> bool:
        """Delete a registered model and evict its cached results."""
        ...

    async def clear_cache(self) -> None:
        """Drop every cached fine-tuning result."""
        ...
