# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""
OpenTelemetry metrics for fine-tuning orchestration.

This module provides centralized metric definitions for tracking:
- Request-level metrics (total requests, duration, concurrency)
- Reuse metrics (result cache hits, existing-model reuse)
- Pipeline metrics (per-stage errors, selected modes, optimizations)
- Management operations (model info, listing, deletion, cache clearing)
"""

from opentelemetry import metrics
from opentelemetry.metrics import Counter, Histogram, UpDownCounter

from . import setup_telemetry  # noqa: F401
from .constants import (
    CACHE_HITS_TOTAL,
    CONCURRENT_REQUESTS,
    EXISTING_MODEL_REUSE_TOTAL,
    MANAGEMENT_OPERATIONS_TOTAL,
    MODE_SELECTED_TOTAL,
    OPTIMIZATIONS_TOTAL,
    REQUEST_DURATION,
    REQUESTS_TOTAL,
    STAGE_ERRORS_TOTAL,
)

# Uses the global MeterProvider configured by OTEL auto-instrumentation
# or set explicitly via metrics.set_meter_provider()
meter = metrics.get_meter("finetune_stack.fine_tuning", version="1.0.0")


requests_total: Counter = meter.create_counter(
    name=REQUESTS_TOTAL,
    description="Total number of fine-tuning requests processed by the engine",
    unit="1",
)

request_duration: Histogram = meter.create_histogram(
    name=REQUEST_DURATION,
    description="Duration of fine-tuning requests from submission to result",
    unit="s",
)

concurrent_requests: UpDownCounter = meter.create_up_down_counter(
    name=CONCURRENT_REQUESTS,
    description="Number of fine-tuning requests currently being processed",
    unit="1",
)

cache_hits_total: Counter = meter.create_counter(
    name=CACHE_HITS_TOTAL,
    description="Requests answered from the result cache",
    unit="1",
)

existing_model_reuse_total: Counter = meter.create_counter(
    name=EXISTING_MODEL_REUSE_TOTAL,
    description="Requests answered by reusing a registered model",
    unit="1",
)

stage_errors_total: Counter = meter.create_counter(
    name=STAGE_ERRORS_TOTAL,
    description="Failures per pipeline stage",
    unit="1",
)

mode_selected_total: Counter = meter.create_counter(
    name=MODE_SELECTED_TOTAL,
    description="Resolved execution modes",
    unit="1",
)

optimizations_total: Counter = meter.create_counter(
    name=OPTIMIZATIONS_TOTAL,
    description="Optimization runs after training",
    unit="1",
)

management_operations_total: Counter = meter.create_counter(
    name=MANAGEMENT_OPERATIONS_TOTAL,
    description="Model management operations",
    unit="1",
)


def create_fine_tuning_metric_attributes(
    model_type: str | None = None,
    mode: str | None = None,
    stage: str | None = None,
    operation: str | None = None,
    status: str | None = None,
) -> dict[str, str]:
    """Create a consistent attribute dictionary for fine-tuning metrics.

    Args:
        model_type: Model category (e.g., "text-classification")
        mode: Resolved execution mode ("local", "hybrid", "cloud")
        stage: Pipeline stage (e.g., "evaluation", "deployment", "cache")
        operation: Management operation (e.g., "delete_model")
        status: Outcome ("success", "error", "cache_hit", "existing_model")

    Returns:
        Dictionary of attributes with non-None values
    """
    attributes: dict[str, str] = {}

    if model_type is not None:
        attributes["model_type"] = model_type
    if mode is not None:
        attributes["mode"] = mode
    if stage is not None:
        attributes["stage"] = stage
    if operation is not None:
        attributes["operation"] = operation
    if status is not None:
        attributes["status"] = status

    return attributes
