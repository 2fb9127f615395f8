# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Pydantic models for the Fine-Tuning API.

This module defines the request/result types exchanged with callers and the
shapes exchanged with the external collaborators (trainer, evaluator,
registry, overfitting detector, hardware provider).
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from finetune_stack_api.schema_utils import json_schema_type


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


@json_schema_type
class ModelCategory(str, Enum):
    """Category of the base model being fine-tuned.

    :cvar TEXT_CLASSIFICATION: Records with `text` and `label`
    :cvar TEXT_GENERATION: Records with `input`, `output` and an optional `prompt_template`
    :cvar IMAGE_CLASSIFICATION: Records with `image` and `label`
    :cvar MULTIMODAL: Records with `text` and/or `image` and a `label`
    """

    TEXT_CLASSIFICATION = "text-classification"
    TEXT_GENERATION = "text-generation"
    IMAGE_CLASSIFICATION = "image-classification"
    MULTIMODAL = "multimodal"


@json_schema_type
class OperationMode(str, Enum):
    """Where and how training runs.

    `auto` is a preference only; the engine always resolves it to one of the
    concrete modes before training.
    """

    AUTO = "auto"
    LOCAL = "local"
    HYBRID = "hybrid"
    CLOUD = "cloud"


@json_schema_type
class ModelStatus(str, Enum):
    TRAINING = "training"
    REGISTERED = "registered"
    DEPLOYED = "deployed"
    FAILED = "failed"
    ARCHIVED = "archived"


class LearnerProfile(BaseModel):
    """Profile of the learners a specialized model targets.

    :param skill_level: Skill level of the target learners (e.g. "beginner")
    :param learning_style: Preferred learning style
    :param preferred_language: Preferred language or dialect
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    skill_level: str | None = None
    learning_style: str | None = None
    preferred_language: str | None = None


class TrainingParameters(BaseModel):
    """Effective or user-supplied training hyperparameters.

    Unknown keys are accepted and passed through to the trainer unchanged.
    """

    model_config = ConfigDict(extra="allow")

    epochs: int | None = None
    batch_size: int | None = None
    learning_rate: float | None = None
    evaluation_strategy: str | None = None
    warmup_steps: int | None = None
    weight_decay: float | None = None
    fp16: bool | None = None
    gradient_accumulation_steps: int | None = None
    cpu_threads: int | None = None
    offload_optimizer: bool | None = None
    gradient_checkpointing: bool | None = None


class ModelOptimizationOptions(BaseModel):
    """Options handed to the optimizer.

    :param quantization: Quantize model weights
    :param pruning_threshold: Magnitude threshold below which weights are pruned
    :param address_overfitting: Whether optimization is meant to counter overfitting
    :param distillation: Distill into a smaller student model
    :param target_size_mb: Desired model size after optimization
    """

    model_config = ConfigDict(extra="allow")

    quantization: bool | None = None
    pruning_threshold: float | None = None
    address_overfitting: bool | None = None
    distillation: bool | None = None
    target_size_mb: float | None = None


class ModelDeploymentOptions(BaseModel):
    """Deployment instructions.

    :param environment: Target environment, one of "local", "cloud" or "edge"
    :param replicas: Number of serving replicas
    :param endpoint: Optional endpoint name
    :param config: Environment-specific settings passed to the deployer
    """

    model_config = ConfigDict(extra="allow")

    environment: str
    replicas: int = 1
    endpoint: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)


@json_schema_type
class FineTuningRequest(BaseModel):
    """A request to produce a specialized model. Immutable once submitted.

    :param model_type: Model category, see ModelCategory
    :param purpose: What the specialized model is for
    :param target_domain: Domain the model targets
    :param learner_profile: Optional learner profile the model targets
    :param training_data: Ordered training records
    :param validation_data: Ordered validation records
    :param evaluation_data: Ordered evaluation records
    :param training_parameters: User-supplied parameters, these win over every default
    :param optimization_options: Explicit optimization options; supplying them forces optimization
    :param preferred_mode: Execution mode preference
    :param force_retrain: Retrain even when a similar model is registered
    :param enable_caching: Look up and store the result in the result cache
    :param deployment: Optional deployment instructions
    :param tags: Optional tags stored with the registered model
    :param timeout_seconds: Optional deadline for the whole request
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_type: str = Field(..., description="Model category, e.g. 'text-classification'")
    purpose: str
    target_domain: str
    learner_profile: LearnerProfile | None = None
    training_data: list[dict[str, Any]] = Field(default_factory=list)
    validation_data: list[dict[str, Any]] = Field(default_factory=list)
    evaluation_data: list[dict[str, Any]] = Field(default_factory=list)
    training_parameters: TrainingParameters | None = None
    optimization_options: ModelOptimizationOptions | None = None
    preferred_mode: OperationMode = OperationMode.AUTO
    force_retrain: bool = False
    enable_caching: bool = True
    deployment: ModelDeploymentOptions | None = None
    tags: list[str] = Field(default_factory=list)
    timeout_seconds: float | None = Field(default=None, gt=0)


class TrainingMetrics(BaseModel):
    final_loss: float | None = None
    validation_loss: float | None = None


class TrainedModel(BaseModel):
    """Output of the trainer and of the optimizer.

    :param model_id: Identifier of the produced model
    :param model_size: Size of the produced model in bytes
    :param training_metrics: Loss figures from training
    """

    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    model_size: float = 0
    training_metrics: TrainingMetrics = Field(default_factory=TrainingMetrics)


class ModelEvaluationResult(BaseModel):
    """Outcome of evaluating a trained model.

    :param model_id: Evaluated model
    :param success: False when the evaluator failed; metrics may then be empty
    :param metrics: Accuracy-like figures produced by the evaluator
    :param error: Evaluator error message when success is False
    """

    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    success: bool = True
    metrics: dict[str, float] = Field(default_factory=dict)
    error: str | None = None


class OverfittingAnalysis(BaseModel):
    is_overfitting: bool = False
    recommended_pruning_threshold: float | None = None


@json_schema_type
class ModelMetadata(BaseModel):
    """Registry record describing how a model was produced."""

    base_model_type: str
    purpose: str
    target_domain: str
    learner_profile_target: LearnerProfile | None = None
    created_at: str = Field(default_factory=utc_now_iso)
    last_used: str = Field(default_factory=utc_now_iso)
    training_dataset_size: int = 0
    operation_mode: OperationMode
    optimized: bool = False
    tags: list[str] = Field(default_factory=list)


@json_schema_type
class RegisteredModel(BaseModel):
    """A model as stored by the registry.

    :param model_id: Registry identifier
    :param metadata: How the model was produced
    :param metrics: Evaluation metrics recorded at registration
    :param status: Lifecycle status
    :param model_size: Size of the registered model
    :param usage_count: Number of times the model was reused
    :param status_details: Details attached to the last status update
    """

    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    metadata: ModelMetadata
    metrics: dict[str, float] = Field(default_factory=dict)
    status: ModelStatus = ModelStatus.REGISTERED
    model_size: float = 0
    usage_count: int = 0
    status_details: dict[str, Any] = Field(default_factory=dict)


class PerformanceMetrics(BaseModel):
    inference_time: float | None = None
    memory_usage: float | None = None
    throughput: float | None = None


@json_schema_type
class ModelInfo(RegisteredModel):
    """A registered model together with its live serving performance, when known."""

    performance_metrics: PerformanceMetrics | None = None


class ModelListFilters(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    purpose: str | None = None
    target_domain: str | None = None
    model_type: str | None = None
    min_accuracy: float | None = None
    status: ModelStatus | None = None
    created_after: datetime | None = None
    tags: list[str] | None = None


class FineTuningWarning(BaseModel):
    """A non-fatal condition reported alongside a successful result.

    :param type: Warning kind, e.g. "overfitting" or "evaluation_failed"
    :param message: Human-readable description
    :param code: Error code of the failure behind the warning, when there is one
    """

    model_config = ConfigDict(frozen=True)

    type: str
    message: str
    code: str | None = None


class FineTuningErrorInfo(BaseModel):
    """Error information attached to an unsuccessful result.

    :param code: Machine-readable error code
    :param message: Human-readable error message
    :param details: Stack trace or additional detail, when available
    """

    model_config = ConfigDict(frozen=True)

    code: str = "unknown_error"
    message: str
    details: str | None = None


class FineTuningResultMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: str
    last_used: str
    operation_mode: OperationMode
    existing_model: bool = False
    processing_time: float = 0.0
    optimized: bool = False


@json_schema_type
class FineTuningResult(BaseModel):
    """Outcome of a fine-tuning request. Immutable once produced.

    An empty `model_id` signals failure: `success=False` always comes with a
    populated `error`, and `success=True` always comes with a model id.

    :param registered: Whether the model was committed to the registry
    :param deployed: Whether deployment ran and succeeded (None when no deployment was requested)
    :param evaluation: The evaluation step outcome, including its error on partial failure
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str = ""
    original_model_type: str
    purpose: str
    success: bool
    metrics: dict[str, float] = Field(default_factory=dict)
    warnings: list[FineTuningWarning] = Field(default_factory=list)
    error: FineTuningErrorInfo | None = None
    evaluation: ModelEvaluationResult | None = None
    registered: bool = False
    deployed: bool | None = None
    metadata: FineTuningResultMetadata


class GpuInfo(BaseModel):
    available: bool = False
    model: str | None = None
    memory: float | None = None


class CpuInfo(BaseModel):
    cores: int
    utilization: float


class MemoryInfo(BaseModel):
    """Memory figures in MB; utilization as a 0-1 ratio."""

    total: float
    available: float
    utilization: float


class ThermalInfo(BaseModel):
    cpu_temperature: float | None = None
    gpu_temperature: float | None = None


@json_schema_type
class HardwareSnapshot(BaseModel):
    """Point-in-time hardware reading used for mode selection. Never persisted."""

    cpu: CpuInfo
    memory: MemoryInfo
    gpu: GpuInfo | None = None
    thermals: ThermalInfo = Field(default_factory=ThermalInfo)


class SetOperationModeRequest(BaseModel):
    mode: OperationMode


class DeleteModelResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    deleted: bool


class ListModelsResponse(BaseModel):
    data: list[RegisteredModel]
