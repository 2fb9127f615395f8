# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Hardware snapshots read from the host with psutil."""

import asyncio

import psutil

from finetune_stack.log import get_logger
from finetune_stack_api import HardwareSnapshot
from finetune_stack_api.fine_tuning.models import CpuInfo, MemoryInfo, ThermalInfo

from .config import SystemHardwareConfig

logger = get_logger(__name__, category="providers")

_MB = 1024 * 1024


class SystemHardwareSnapshotProvider:
    """Reports live CPU, memory and temperature readings.

    GPU presence is not probed; snapshots from this provider carry no GPU
    section, which mode selection does not consult.
    """

    def __init__(self, config: SystemHardwareConfig | None = None):
        self.config = config or SystemHardwareConfig()

    def _read(self) -> HardwareSnapshot:
        cores = psutil.cpu_count(logical=not self.config.physical_cores) or psutil.cpu_count() or 1
        utilization = psutil.cpu_percent(interval=self.config.cpu_sample_interval) / 100.0
        memory = psutil.virtual_memory()
        return HardwareSnapshot(
            cpu=CpuInfo(cores=cores, utilization=utilization),
            memory=MemoryInfo(
                total=memory.total / _MB,
                available=memory.available / _MB,
                utilization=memory.percent / 100.0,
            ),
            thermals=self._read_thermals(),
        )

    def _read_thermals(self) -> ThermalInfo:
        # sensors_temperatures is missing on some platforms (macOS, Windows)
        sensors = getattr(psutil, "sensors_temperatures", None)
        if sensors is None:
            return ThermalInfo()
        try:
            readings = sensors()
        except (OSError, RuntimeError) as e:
            logger.debug(f"Temperature sensors unavailable: {e}")
            return ThermalInfo()

        cpu_temperature = None
        for label in ("coretemp", "k10temp", "cpu_thermal", "acpitz"):
            if readings.get(label):
                cpu_temperature = readings[label][0].current
                break
        gpu_temperature = None
        for label in ("amdgpu", "nouveau", "radeon"):
            if readings.get(label):
                gpu_temperature = readings[label][0].current
                break
        return ThermalInfo(cpu_temperature=cpu_temperature, gpu_temperature=gpu_temperature)

    async def get_snapshot(self) -> HardwareSnapshot:
        snapshot = await asyncio.to_thread(self._read)
        logger.debug(
            f"Hardware snapshot: cores={snapshot.cpu.cores}, cpu={snapshot.cpu.utilization:.2f}, "
            f"available_mb={snapshot.memory.available:.0f}"
        )
        return snapshot
