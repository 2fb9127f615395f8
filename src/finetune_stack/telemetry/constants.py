# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""
Names for the telemetry data captured by the Fine-Tuning Stack.

If custom telemetry data is added, please add constants for it here so that
names stay consistent and can be correlated.
"""

finetune_stack_prefix = "finetune_stack"

FINE_TUNING_PREFIX = f"{finetune_stack_prefix}.fine_tuning"

# Request-level metrics
REQUESTS_TOTAL = f"{FINE_TUNING_PREFIX}.requests_total"
REQUEST_DURATION = f"{FINE_TUNING_PREFIX}.request_duration_seconds"
CONCURRENT_REQUESTS = f"{FINE_TUNING_PREFIX}.concurrent_requests"

# Reuse metrics
CACHE_HITS_TOTAL = f"{FINE_TUNING_PREFIX}.cache_hits_total"
EXISTING_MODEL_REUSE_TOTAL = f"{FINE_TUNING_PREFIX}.existing_model_reuse_total"

# Pipeline metrics
STAGE_ERRORS_TOTAL = f"{FINE_TUNING_PREFIX}.stage_errors_total"
MODE_SELECTED_TOTAL = f"{FINE_TUNING_PREFIX}.mode_selected_total"
OPTIMIZATIONS_TOTAL = f"{FINE_TUNING_PREFIX}.optimizations_total"

# Management operations
MANAGEMENT_OPERATIONS_TOTAL = f"{FINE_TUNING_PREFIX}.management_operations_total"
