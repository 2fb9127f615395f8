# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Interfaces of the collaborators the fine-tuning engine consumes.

The engine only sequences these calls and interprets their outputs; the
numeric, storage and deployment work happens behind them.
"""

from typing import Any, Protocol, runtime_checkable

from .models import (
    FineTuningResult,
    HardwareSnapshot,
    LearnerProfile,
    ModelDeploymentOptions,
    ModelEvaluationResult,
    ModelListFilters,
    ModelMetadata,
    ModelOptimizationOptions,
    ModelStatus,
    OperationMode,
    OverfittingAnalysis,
    PerformanceMetrics,
    RegisteredModel,
    TrainedModel,
    TrainingMetrics,
    TrainingParameters,
)


@runtime_checkable
class ModelRegistry(Protocol):
    async def find_similar_model(
        self,
        model_type: str,
        purpose: str,
        target_domain: str,
        learner_profile: LearnerProfile | None,
    ) -> RegisteredModel | None: ...

    async def record_model_usage(self, model_id: str) -> None: ...

    async def register_model(
        self,
        model_id: str,
        metadata: ModelMetadata,
        evaluation: ModelEvaluationResult,
        model_size: float,
    ) -> None: ...

    async def update_model_status(self, model_id: str, status: ModelStatus, details: dict[str, Any]) -> None: ...

    async def get_model_info(self, model_id: str) -> RegisteredModel | None: ...

    async def list_models(self, filters: ModelListFilters | None = None) -> list[RegisteredModel]: ...

    async def delete_model(self, model_id: str) -> bool: ...


@runtime_checkable
class Trainer(Protocol):
    async def train_model(
        self,
        model_type: str,
        data: list[dict[str, Any]],
        params: TrainingParameters,
        mode: OperationMode,
        validation_data: list[dict[str, Any]],
    ) -> TrainedModel: ...

    async def optimize_model(self, model_id: str, options: ModelOptimizationOptions) -> TrainedModel: ...

    async def deploy_model_locally(self, model_id: str, options: ModelDeploymentOptions) -> None: ...

    async def deploy_model_to_cloud(self, model_id: str, options: ModelDeploymentOptions) -> None: ...

    async def deploy_model_to_edge(self, model_id: str, options: ModelDeploymentOptions) -> None: ...


@runtime_checkable
class Evaluator(Protocol):
    async def evaluate_model(
        self, model_id: str, data: list[dict[str, Any]], model_type: str
    ) -> ModelEvaluationResult: ...


@runtime_checkable
class OverfittingDetector(Protocol):
    async def detect_overfitting(
        self, training_metrics: TrainingMetrics, evaluation: ModelEvaluationResult
    ) -> OverfittingAnalysis: ...


@runtime_checkable
class HardwareSnapshotProvider(Protocol):
    async def get_snapshot(self) -> HardwareSnapshot: ...


@runtime_checkable
class PerformanceMonitor(Protocol):
    async def get_model_metrics(self, model_id: str) -> PerformanceMetrics: ...


@runtime_checkable
class ResultCache(Protocol):
    """Keyed store of completed results.

    Reads and writes of a single key are atomic; tiers and eviction are the
    implementation's concern.
    """

    async def get(self, key: str) -> FineTuningResult | None: ...

    async def set(self, key: str, value: FineTuningResult) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def list_keys(self) -> list[str]: ...

    async def clear(self) -> None: ...
