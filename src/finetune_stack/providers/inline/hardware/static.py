# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from finetune_stack_api import HardwareSnapshot
from finetune_stack_api.fine_tuning.models import CpuInfo, GpuInfo, MemoryInfo, ThermalInfo

from .config import StaticHardwareConfig


class StaticHardwareSnapshotProvider:
    """Always reports the configured reading."""

    def __init__(self, config: StaticHardwareConfig | None = None):
        self.config = config or StaticHardwareConfig()

    async def get_snapshot(self) -> HardwareSnapshot:
        c = self.config
        return HardwareSnapshot(
            cpu=CpuInfo(cores=c.cpu_cores, utilization=c.cpu_utilization),
            memory=MemoryInfo(
                total=c.memory_total_mb,
                available=c.memory_available_mb,
                utilization=round(1 - c.memory_available_mb / c.memory_total_mb, 4),
            ),
            gpu=GpuInfo(available=c.gpu_available, model=c.gpu_model, memory=c.gpu_memory_mb)
            if c.gpu_available
            else None,
            thermals=ThermalInfo(cpu_temperature=c.cpu_temperature, gpu_temperature=c.gpu_temperature),
        )
