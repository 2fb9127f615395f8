# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Fine-tuning pipeline orchestration.

The orchestrator sequences the external collaborators for a request:
cache lookup, mode resolution, existing-model reuse, preprocessing,
parameter configuration, training, evaluation, overfitting detection,
conditional optimization, registration, optional deployment and cache write.

Expected failures become a ``success=False`` result. Deployment failures are
the exception: they are raised as DeploymentError after registration, carrying
the registered-but-not-deployed result.
"""

import asyncio
import time
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from finetune_stack.log import get_logger
from finetune_stack.providers.utils.cache import CircuitBreaker, TieredResultCache
from finetune_stack.telemetry.fine_tuning_metrics import (
    cache_hits_total,
    concurrent_requests,
    create_fine_tuning_metric_attributes,
    existing_model_reuse_total,
    management_operations_total,
    mode_selected_total,
    optimizations_total,
    request_duration,
    requests_total,
    stage_errors_total,
)
from finetune_stack_api import (
    DeploymentError,
    EmptyDatasetError,
    EvaluationError,
    Evaluator,
    FineTuning,
    FineTuningErrorInfo,
    FineTuningRequest,
    FineTuningResult,
    FineTuningResultMetadata,
    FineTuningTimeoutError,
    FineTuningWarning,
    HardwareSnapshotProvider,
    ModelDeploymentOptions,
    ModelEvaluationResult,
    ModelInfo,
    ModelListFilters,
    ModelMetadata,
    ModelNotFoundError,
    ModelOptimizationOptions,
    ModelRegistry,
    ModelStatus,
    OperationMode,
    OverfittingAnalysis,
    OverfittingDetector,
    PerformanceMonitor,
    RegisteredModel,
    ResultCache,
    TrainedModel,
    Trainer,
    UnsupportedDeploymentEnvironmentError,
)
from finetune_stack_api.fine_tuning.models import utc_now_iso

from .cache_key import CacheKeyBuilder, canonical_json
from .config import FineTuningEngineConfig
from .mode_selector import ModeSelector, requires_hardware
from .parameters import ParameterConfigurer
from .preprocessing import DataPreprocessor
from .single_flight import SingleFlight

logger = get_logger(__name__, category="fine_tuning")

T = TypeVar("T")

OVERFITTING_WARNING = FineTuningWarning(
    type="overfitting", message="Model showed signs of overfitting and was optimized"
)

# Transient failures of training/evaluation that are worth another attempt
RETRYABLE_ERRORS = (ConnectionError, TimeoutError)


@dataclass
class _RequestContext:
    start: float
    mode: OperationMode | None = None


def reduction_ratio(original_size: float, optimized_size: float) -> float:
    if original_size <= 0:
        return 0.0
    return 1 - optimized_size / original_size


class FineTuningOrchestrator(FineTuning):
    """Default implementation of the FineTuning protocol.

    The collaborators are injected; the orchestrator owns only the pinned
    operation mode, the single-flight map and the cache circuit breaker.
    """

    def __init__(
        self,
        config: FineTuningEngineConfig,
        registry: ModelRegistry,
        trainer: Trainer,
        evaluator: Evaluator,
        overfitting_detector: OverfittingDetector,
        hardware_provider: HardwareSnapshotProvider,
        result_cache: ResultCache | None = None,
        performance_monitor: PerformanceMonitor | None = None,
    ):
        self.config = config
        self.registry = registry
        self.trainer = trainer
        self.evaluator = evaluator
        self.overfitting_detector = overfitting_detector
        self.hardware_provider = hardware_provider
        self.result_cache: ResultCache = result_cache or TieredResultCache(config.cache)
        self.performance_monitor = performance_monitor

        self.operation_mode = config.operation_mode
        self.cache_key_builder = CacheKeyBuilder()
        self.mode_selector = ModeSelector(config.mode_thresholds)
        self.preprocessor = DataPreprocessor()
        self.parameter_configurer = ParameterConfigurer()

        self._single_flight: SingleFlight[FineTuningResult] = SingleFlight()
        self._cache_breaker = CircuitBreaker(
            failure_threshold=config.cache.breaker_failure_threshold,
            recovery_timeout=config.cache.breaker_recovery_timeout,
        )

    # -- produced surface -------------------------------------------------

    async def fine_tune_model(self, request: FineTuningRequest) -> FineTuningResult:
        ctx = _RequestContext(start=time.monotonic())
        attributes = create_fine_tuning_metric_attributes(model_type=request.model_type)
        concurrent_requests.add(1, attributes)
        status = "error"
        try:
            cache_key = None
            if request.enable_caching:
                cache_key = self.cache_key_builder.build(request)
                cached = await self._cache_get(cache_key)
                if cached is not None:
                    logger.info(f"Returning cached fine-tuning result for {cache_key}")
                    cache_hits_total.add(1, attributes)
                    status = "cache_hit"
                    return cached

            if cache_key is not None and self.config.deduplicate_in_flight:
                flight_key = self._flight_key(request, cache_key)
                result = await self._run_with_deadline(
                    request,
                    ctx,
                    lambda: self._single_flight.run(flight_key, lambda: self._run_pipeline(request, cache_key, ctx)),
                )
            else:
                result = await self._run_with_deadline(
                    request, ctx, lambda: self._run_pipeline(request, cache_key, ctx)
                )

            if not result.success:
                status = "error"
            elif result.metadata.existing_model:
                status = "existing_model"
            else:
                status = "success"
            return result
        finally:
            concurrent_requests.add(-1, attributes)
            requests_total.add(1, create_fine_tuning_metric_attributes(model_type=request.model_type, status=status))
            request_duration.record(
                time.monotonic() - ctx.start,
                create_fine_tuning_metric_attributes(model_type=request.model_type, status=status),
            )

    def set_operation_mode(self, mode: OperationMode) -> None:
        self.operation_mode = OperationMode(mode)
        management_operations_total.add(
            1, create_fine_tuning_metric_attributes(operation="set_operation_mode", mode=self.operation_mode.value)
        )
        logger.info(f"Fine-tuning operation mode set to {self.operation_mode.value}")

    async def get_model_info(self, model_id: str) -> ModelInfo:
        model = await self._manage("get_model_info", self.registry.get_model_info(model_id))
        if model is None:
            raise ModelNotFoundError(model_id)

        info = model.model_dump()
        if self.performance_monitor is not None:
            info["performance_metrics"] = await self._manage(
                "get_model_info", self.performance_monitor.get_model_metrics(model_id)
            )
        return ModelInfo.model_validate(info)

    async def list_models(self, filters: ModelListFilters | None = None) -> list[RegisteredModel]:
        models = await self._manage("list_models", self.registry.list_models(filters))
        logger.info(f"Retrieved {len(models)} models (filters={filters})")
        return models

    async def delete_model(self, model_id: str) -> bool:
        deleted = await self._manage("delete_model", self.registry.delete_model(model_id))
        if not deleted:
            logger.warning(f"Model {model_id} not found for deletion")
            return False

        removed = await self._evict_cached_results(model_id)
        logger.info(f"Deleted model {model_id} and {removed} cached results")
        return True

    async def clear_cache(self) -> None:
        await self._manage("clear_cache", self.result_cache.clear())
        self._cache_breaker.reset()

    # -- pipeline ---------------------------------------------------------

    def _flight_key(self, request: FineTuningRequest, cache_key: str) -> str:
        """Requests share a run only when they agree on retraining and deployment too."""
        deployment = canonical_json(request.deployment.model_dump(mode="json")) if request.deployment else "none"
        return f"{cache_key}|force_retrain={request.force_retrain}|deployment={deployment}"

    async def _run_with_deadline(
        self,
        request: FineTuningRequest,
        ctx: _RequestContext,
        run: Callable[[], Awaitable[FineTuningResult]],
    ) -> FineTuningResult:
        timeout = request.timeout_seconds or self.config.request_timeout_seconds
        try:
            # each caller waits under its own deadline, also when it shares another caller's run
            async with asyncio.timeout(timeout):
                return await run()
        except TimeoutError:
            # Stage failures are absorbed inside the pipeline; only the deadline reaches here.
            self._record_stage_error("timeout", request, ctx.mode)
            logger.error(f"Fine-tuning request for {request.model_type} timed out after {timeout}s")
            return self._error_result(request, FineTuningTimeoutError(timeout), ctx)

    async def _run_pipeline(
        self, request: FineTuningRequest, cache_key: str | None, ctx: _RequestContext
    ) -> FineTuningResult:
        try:
            mode = await self._resolve_mode(request)
            ctx.mode = mode

            existing = await self.registry.find_similar_model(
                request.model_type, request.purpose, request.target_domain, request.learner_profile
            )
            if existing is not None and not request.force_retrain:
                logger.info(f"Using existing fine-tuned model {existing.model_id}")
                existing_model_reuse_total.add(1, create_fine_tuning_metric_attributes(model_type=request.model_type))
                await self.registry.record_model_usage(existing.model_id)
                result = self._existing_model_result(existing, mode, ctx)
                await self._cache_set(cache_key, result)
                return result

            processed = self.preprocessor.process(request.training_data, request.model_type)
            if not processed:
                raise EmptyDatasetError("No valid training records after preprocessing")
            params = self.parameter_configurer.configure(
                request.training_parameters, request.model_type, len(processed), mode
            )

            logger.info(f"Starting fine-tuning: type={request.model_type}, mode={mode.value}, records={len(processed)}")
            trained: TrainedModel = await self._with_retries(
                "training",
                lambda: self.trainer.train_model(request.model_type, processed, params, mode, request.validation_data),
            )

            evaluation = await self._evaluate(trained.model_id, request)
            overfitting = await self.overfitting_detector.detect_overfitting(trained.training_metrics, evaluation)

            final_model = trained
            optimized = overfitting.is_overfitting or request.optimization_options is not None
            if optimized:
                options = self._optimization_options(request, overfitting, mode)
                logger.info(
                    f"Optimizing model {trained.model_id}: overfitting={overfitting.is_overfitting}, "
                    f"options={options.model_dump(exclude_none=True)}"
                )
                optimizations_total.add(
                    1,
                    create_fine_tuning_metric_attributes(
                        model_type=request.model_type,
                        status="overfitting" if overfitting.is_overfitting else "requested",
                    ),
                )
                final_model = await self.trainer.optimize_model(trained.model_id, options)

            metadata = ModelMetadata(
                base_model_type=request.model_type,
                purpose=request.purpose,
                target_domain=request.target_domain,
                learner_profile_target=request.learner_profile,
                training_dataset_size=len(processed),
                operation_mode=mode,
                optimized=optimized,
                tags=list(request.tags),
            )
            await self.registry.register_model(final_model.model_id, metadata, evaluation, final_model.model_size)
            logger.info(f"Registered fine-tuned model {final_model.model_id}")

            result = self._assemble_result(
                request, trained, final_model, evaluation, overfitting, metadata, len(processed), ctx
            )
        except Exception as e:
            self._record_stage_error(_stage_of(e), request, ctx.mode)
            logger.error(f"Fine-tuning failed: {e}")
            return self._error_result(request, e, ctx)

        if request.deployment is not None:
            result = await self._deploy(final_model.model_id, request.deployment, result, request)

        await self._cache_set(cache_key, result)
        return result

    async def _resolve_mode(self, request: FineTuningRequest) -> OperationMode:
        hardware = None
        if requires_hardware(request, self.operation_mode):
            hardware = await self.hardware_provider.get_snapshot()
        mode = self.mode_selector.resolve(request, hardware, self.operation_mode)
        mode_selected_total.add(1, create_fine_tuning_metric_attributes(model_type=request.model_type, mode=mode.value))
        logger.debug(f"Resolved execution mode {mode.value} for {request.model_type}")
        return mode

    async def _evaluate(self, model_id: str, request: FineTuningRequest) -> ModelEvaluationResult:
        logger.info(f"Evaluating model {model_id} on {len(request.evaluation_data)} records")
        try:
            evaluation = await self._with_retries(
                "evaluation",
                lambda: self.evaluator.evaluate_model(model_id, request.evaluation_data, request.model_type),
            )
        except Exception as e:
            error = EvaluationError(model_id, str(e))
            self._record_stage_error("evaluation", request, None)
            logger.error(str(error))
            return ModelEvaluationResult(model_id=model_id, success=False, metrics={}, error=str(error))

        logger.info(f"Evaluation of model {model_id} completed: {evaluation.metrics}")
        return evaluation

    def _optimization_options(
        self, request: FineTuningRequest, overfitting: OverfittingAnalysis, mode: OperationMode
    ) -> ModelOptimizationOptions:
        supplied = request.optimization_options
        options: dict[str, Any] = supplied.model_dump(exclude_unset=True) if supplied else {}
        options["address_overfitting"] = overfitting.is_overfitting
        options["pruning_threshold"] = overfitting.recommended_pruning_threshold
        options["quantization"] = bool(supplied and supplied.quantization) or mode == OperationMode.LOCAL
        return ModelOptimizationOptions(**options)

    async def _deploy(
        self,
        model_id: str,
        options: ModelDeploymentOptions,
        result: FineTuningResult,
        request: FineTuningRequest,
    ) -> FineTuningResult:
        deployers: dict[str, Callable[[str, ModelDeploymentOptions], Awaitable[None]]] = {
            "local": self.trainer.deploy_model_locally,
            "cloud": self.trainer.deploy_model_to_cloud,
            "edge": self.trainer.deploy_model_to_edge,
        }
        failed = result.model_copy(update={"deployed": False})
        logger.info(f"Deploying model {model_id} to {options.environment}")

        deploy = deployers.get(options.environment)
        if deploy is None:
            self._record_stage_error("deployment", request, result.metadata.operation_mode)
            logger.error(f"Unsupported deployment environment '{options.environment}' for model {model_id}")
            raise UnsupportedDeploymentEnvironmentError(model_id, options.environment, result=failed)

        try:
            await deploy(model_id, options)
            await self.registry.update_model_status(
                model_id,
                ModelStatus.DEPLOYED,
                {
                    "deployment_environment": options.environment,
                    "deployment_timestamp": utc_now_iso(),
                    "deployment_config": options.model_dump(),
                },
            )
        except Exception as e:
            self._record_stage_error("deployment", request, result.metadata.operation_mode)
            logger.error(f"Deployment of model {model_id} to {options.environment} failed: {e}")
            raise DeploymentError(model_id, options.environment, str(e), result=failed) from e

        logger.info(f"Model {model_id} deployed to {options.environment}")
        return result.model_copy(update={"deployed": True})

    async def _with_retries(self, stage: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run `operation`, retrying transient failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                return await operation()
            except RETRYABLE_ERRORS as e:
                if attempt >= self.config.max_retries:
                    raise
                backoff = 2**attempt * self.config.retry_backoff_seconds
                logger.warning(
                    f"{stage.capitalize()} failed (attempt {attempt + 1}/{self.config.max_retries + 1}), "
                    f"retrying in {backoff}s: {e}"
                )
                await asyncio.sleep(backoff)
                attempt += 1

    # -- result assembly --------------------------------------------------

    def _assemble_result(
        self,
        request: FineTuningRequest,
        trained: TrainedModel,
        final_model: TrainedModel,
        evaluation: ModelEvaluationResult,
        overfitting: OverfittingAnalysis,
        metadata: ModelMetadata,
        training_samples: int,
        ctx: _RequestContext,
    ) -> FineTuningResult:
        metrics = dict(evaluation.metrics)
        loss_metrics = {
            "training_loss": final_model.training_metrics.final_loss,
            "validation_loss": final_model.training_metrics.validation_loss,
        }
        metrics.update({name: value for name, value in loss_metrics.items() if value is not None})
        metrics.update(
            {
                "training_samples": training_samples,
                "validation_samples": len(request.validation_data),
                "evaluation_samples": len(request.evaluation_data),
                "model_size": final_model.model_size,
                "original_model_size": trained.model_size,
                "reduction_ratio": reduction_ratio(trained.model_size, final_model.model_size),
            }
        )

        warnings = [OVERFITTING_WARNING] if overfitting.is_overfitting else []
        if not evaluation.success:
            message = evaluation.error or "Evaluation failed"
            warnings.append(
                FineTuningWarning(type="evaluation_failed", message=message, code=EvaluationError.code)
            )

        return FineTuningResult(
            model_id=final_model.model_id,
            original_model_type=request.model_type,
            purpose=request.purpose,
            success=True,
            metrics=metrics,
            warnings=warnings,
            evaluation=evaluation,
            registered=True,
            deployed=None,
            metadata=FineTuningResultMetadata(
                created_at=metadata.created_at,
                last_used=metadata.last_used,
                operation_mode=metadata.operation_mode,
                existing_model=False,
                processing_time=time.monotonic() - ctx.start,
                optimized=metadata.optimized,
            ),
        )

    def _existing_model_result(
        self, existing: RegisteredModel, mode: OperationMode, ctx: _RequestContext
    ) -> FineTuningResult:
        return FineTuningResult(
            model_id=existing.model_id,
            original_model_type=existing.metadata.base_model_type,
            purpose=existing.metadata.purpose,
            success=True,
            metrics=dict(existing.metrics),
            registered=True,
            metadata=FineTuningResultMetadata(
                created_at=existing.metadata.created_at,
                last_used=utc_now_iso(),
                operation_mode=mode,
                existing_model=True,
                processing_time=time.monotonic() - ctx.start,
                optimized=existing.metadata.optimized,
            ),
        )

    def _error_result(self, request: FineTuningRequest, error: Exception, ctx: _RequestContext) -> FineTuningResult:
        now = utc_now_iso()
        code = getattr(error, "code", None)
        details = "".join(traceback.format_exception(error)) if error.__traceback__ is not None else None
        return FineTuningResult(
            model_id="",
            original_model_type=request.model_type,
            purpose=request.purpose,
            success=False,
            error=FineTuningErrorInfo(
                code=code if isinstance(code, str) else "unknown_error",
                message=str(error) or type(error).__name__,
                details=details,
            ),
            metadata=FineTuningResultMetadata(
                created_at=now,
                last_used=now,
                operation_mode=ctx.mode or self.operation_mode,
                processing_time=time.monotonic() - ctx.start,
            ),
        )

    # -- cache and bookkeeping --------------------------------------------

    async def _cache_get(self, key: str) -> FineTuningResult | None:
        if not self._cache_breaker.is_closed():
            return None
        try:
            value = await self.result_cache.get(key)
        except Exception as e:
            self._cache_breaker.record_failure()
            stage_errors_total.add(1, create_fine_tuning_metric_attributes(stage="cache"))
            logger.warning(f"Result cache read failed, treating as a miss: {e}")
            return None
        self._cache_breaker.record_success()
        return value

    async def _cache_set(self, key: str | None, result: FineTuningResult) -> None:
        if key is None or not self._cache_breaker.is_closed():
            return
        try:
            await self.result_cache.set(key, result)
        except Exception as e:
            self._cache_breaker.record_failure()
            stage_errors_total.add(1, create_fine_tuning_metric_attributes(stage="cache"))
            logger.warning(f"Result cache write failed, result not cached: {e}")
            return
        self._cache_breaker.record_success()

    async def _evict_cached_results(self, model_id: str) -> int:
        removed = 0
        try:
            for key in await self.result_cache.list_keys():
                cached = await self.result_cache.get(key)
                if cached is not None and cached.model_id == model_id:
                    removed += int(await self.result_cache.delete(key))
        except Exception as e:
            stage_errors_total.add(1, create_fine_tuning_metric_attributes(stage="cache"))
            logger.warning(f"Failed to evict cached results of model {model_id}: {e}")
        return removed

    async def _manage(self, operation: str, call: Awaitable[T]) -> T:
        try:
            value = await call
        except Exception as e:
            management_operations_total.add(
                1, create_fine_tuning_metric_attributes(operation=operation, status="error")
            )
            logger.error(f"{operation} failed: {e}")
            raise
        management_operations_total.add(1, create_fine_tuning_metric_attributes(operation=operation, status="success"))
        return value

    def _record_stage_error(self, stage: str, request: FineTuningRequest, mode: OperationMode | None) -> None:
        stage_errors_total.add(
            1,
            create_fine_tuning_metric_attributes(
                model_type=request.model_type, mode=mode.value if mode else None, stage=stage
            ),
        )


def _stage_of(error: Exception) -> str:
    code = getattr(error, "code", None)
    if code == "validation_error":
        return "validation"
    return "pipeline"
