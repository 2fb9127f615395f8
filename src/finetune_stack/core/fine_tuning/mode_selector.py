# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Resolution of the `auto` execution mode against dataset size and hardware."""

from pydantic import BaseModel, Field

from finetune_stack_api import FineTuningRequest, HardwareSnapshot, OperationMode


class ModeTier(BaseModel):
    """Conditions under which a tier is chosen; all must hold.

    :param max_examples: Combined train+validation count must be strictly below this
    :param min_cpu_cores: Minimum CPU core count
    :param max_cpu_utilization: CPU utilization (0-1) must be strictly below this
    :param min_available_memory_mb: Available memory must be strictly above this
    """

    max_examples: int = Field(gt=0)
    min_cpu_cores: int = Field(gt=0)
    max_cpu_utilization: float = Field(gt=0, le=1)
    min_available_memory_mb: float = Field(ge=0)

    def admits(self, dataset_size: int, hardware: HardwareSnapshot) -> bool:
        return (
            dataset_size < self.max_examples
            and hardware.cpu.cores >= self.min_cpu_cores
            and hardware.cpu.utilization < self.max_cpu_utilization
            and hardware.memory.available > self.min_available_memory_mb
        )


class ModeThresholds(BaseModel):
    local: ModeTier = Field(
        default_factory=lambda: ModeTier(
            max_examples=500, min_cpu_cores=6, max_cpu_utilization=0.7, min_available_memory_mb=8192
        )
    )
    hybrid: ModeTier = Field(
        default_factory=lambda: ModeTier(
            max_examples=5000, min_cpu_cores=4, max_cpu_utilization=0.8, min_available_memory_mb=4096
        )
    )


def requires_hardware(request: FineTuningRequest, pinned_mode: OperationMode) -> bool:
    """True when only the hardware table can decide the mode."""
    return request.preferred_mode == OperationMode.AUTO and pinned_mode == OperationMode.AUTO


class ModeSelector:
    """Ordered decision table: explicit preference, pinned mode, local, hybrid, cloud.

    The first matching row wins; there is no scoring. Never returns `auto`.
    """

    def __init__(self, thresholds: ModeThresholds | None = None):
        self.thresholds = thresholds or ModeThresholds()

    def resolve(
        self,
        request: FineTuningRequest,
        hardware: HardwareSnapshot | None,
        pinned_mode: OperationMode = OperationMode.AUTO,
    ) -> OperationMode:
        if request.preferred_mode != OperationMode.AUTO:
            return request.preferred_mode
        if pinned_mode != OperationMode.AUTO:
            return pinned_mode
        if hardware is None:
            raise ValueError("A hardware snapshot is required to resolve the 'auto' mode")

        dataset_size = len(request.training_data) + len(request.validation_data)
        if self.thresholds.local.admits(dataset_size, hardware):
            return OperationMode.LOCAL
        if self.thresholds.hybrid.admits(dataset_size, hardware):
            return OperationMode.HYBRID
        return OperationMode.CLOUD
