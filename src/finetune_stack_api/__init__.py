# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""
Fine-Tuning Stack API Definitions

This package contains the API definitions, data types, and protocol interfaces
for the Fine-Tuning Stack. It is a lightweight dependency for collaborators and
clients that need to interact with the engine without the implementation.

Key components:
- fine_tuning: the FineTuning protocol, collaborator protocols and pydantic models
- common: the error taxonomy shared by the engine and the HTTP layer
- schema_utils: schema registration helpers
"""

__version__ = "0.1.0"

from . import common, fine_tuning, schema_utils  # noqa: F401
from .common.errors import (
    DeploymentError,
    EmptyDatasetError,
    EvaluationError,
    FineTuningStackError,
    FineTuningTimeoutError,
    FineTuningValidationError,
    ModelNotFoundError,
    UnsupportedDeploymentEnvironmentError,
    UnsupportedModelCategoryError,
)
from .fine_tuning import (
    Evaluator,
    FineTuning,
    FineTuningErrorInfo,
    FineTuningRequest,
    FineTuningResult,
    FineTuningResultMetadata,
    FineTuningWarning,
    HardwareSnapshot,
    HardwareSnapshotProvider,
    LearnerProfile,
    ModelCategory,
    ModelDeploymentOptions,
    ModelEvaluationResult,
    ModelInfo,
    ModelListFilters,
    ModelMetadata,
    ModelOptimizationOptions,
    ModelRegistry,
    ModelStatus,
    OperationMode,
    OverfittingAnalysis,
    OverfittingDetector,
    PerformanceMetrics,
    PerformanceMonitor,
    RegisteredModel,
    ResultCache,
    TrainedModel,
    Trainer,
    TrainingMetrics,
    TrainingParameters,
)

__all__ = [
    "common",
    "fine_tuning",
    "schema_utils",
    "DeploymentError",
    "EmptyDatasetError",
    "EvaluationError",
    "FineTuningStackError",
    "FineTuningTimeoutError",
    "FineTuningValidationError",
    "ModelNotFoundError",
    "UnsupportedDeploymentEnvironmentError",
    "UnsupportedModelCategoryError",
    "Evaluator",
    "FineTuning",
    "FineTuningErrorInfo",
    "FineTuningRequest",
    "FineTuningResult",
    "FineTuningResultMetadata",
    "FineTuningWarning",
    "HardwareSnapshot",
    "HardwareSnapshotProvider",
    "LearnerProfile",
    "ModelCategory",
    "ModelDeploymentOptions",
    "ModelEvaluationResult",
    "ModelInfo",
    "ModelListFilters",
    "ModelMetadata",
    "ModelOptimizationOptions",
    "ModelRegistry",
    "ModelStatus",
    "OperationMode",
    "OverfittingAnalysis",
    "OverfittingDetector",
    "PerformanceMetrics",
    "PerformanceMonitor",
    "RegisteredModel",
    "ResultCache",
    "TrainedModel",
    "Trainer",
    "TrainingMetrics",
    "TrainingParameters",
]
