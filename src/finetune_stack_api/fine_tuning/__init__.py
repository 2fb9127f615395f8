# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Fine-Tuning API protocol and models.

This module contains the FineTuning protocol definition and the protocols of
the collaborators it consumes.
Pydantic models are defined in finetune_stack_api.fine_tuning.models.
The FastAPI router is defined in finetune_stack_api.fine_tuning.fastapi_routes.
"""

# Import fastapi_routes for router factory access
from . import fastapi_routes

# Import protocols for re-export
from .api import FineTuning
from .collaborators import (
    Evaluator,
    HardwareSnapshotProvider,
    ModelRegistry,
    OverfittingDetector,
    PerformanceMonitor,
    ResultCache,
    Trainer,
)
from .models import (
    CpuInfo,
    DeleteModelResponse,
    FineTuningErrorInfo,
    FineTuningRequest,
    FineTuningResult,
    FineTuningResultMetadata,
    FineTuningWarning,
    GpuInfo,
    HardwareSnapshot,
    LearnerProfile,
    ListModelsResponse,
    MemoryInfo,
    ModelCategory,
    ModelDeploymentOptions,
    ModelEvaluationResult,
    ModelInfo,
    ModelListFilters,
    ModelMetadata,
    ModelOptimizationOptions,
    ModelStatus,
    OperationMode,
    OverfittingAnalysis,
    PerformanceMetrics,
    RegisteredModel,
    SetOperationModeRequest,
    ThermalInfo,
    TrainedModel,
    TrainingMetrics,
    TrainingParameters,
)

__all__ = [
    "FineTuning",
    "Evaluator",
    "HardwareSnapshotProvider",
    "ModelRegistry",
    "OverfittingDetector",
    "PerformanceMonitor",
    "ResultCache",
    "Trainer",
    "CpuInfo",
    "DeleteModelResponse",
    "FineTuningErrorInfo",
    "FineTuningRequest",
    "FineTuningResult",
    "FineTuningResultMetadata",
    "FineTuningWarning",
    "GpuInfo",
    "HardwareSnapshot",
    "LearnerProfile",
    "ListModelsResponse",
    "MemoryInfo",
    "ModelCategory",
    "ModelDeploymentOptions",
    "ModelEvaluationResult",
    "ModelInfo",
    "ModelListFilters",
    "ModelMetadata",
    "ModelOptimizationOptions",
    "ModelStatus",
    "OperationMode",
    "OverfittingAnalysis",
    "PerformanceMetrics",
    "RegisteredModel",
    "SetOperationModeRequest",
    "ThermalInfo",
    "TrainedModel",
    "TrainingMetrics",
    "TrainingParameters",
    "fastapi_routes",
]
