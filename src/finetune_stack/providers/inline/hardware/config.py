# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from typing import Any

from pydantic import BaseModel, Field


class StaticHardwareConfig(BaseModel):
    """Fixed hardware reading, for hosts without usable sensors and for tests.

    Defaults describe an 8-core workstation at 40% load with 18 GB of its
    32 GB free and a 2 GB integrated GPU.
    """

    cpu_cores: int = Field(default=8, gt=0)
    cpu_utilization: float = Field(default=0.4, ge=0, le=1)
    memory_total_mb: float = Field(default=32768, gt=0)
    memory_available_mb: float = Field(default=18432, ge=0)
    gpu_available: bool = True
    gpu_model: str | None = "AMD Radeon Graphics"
    gpu_memory_mb: float | None = 2048
    cpu_temperature: float | None = 65
    gpu_temperature: float | None = 70

    @classmethod
    def sample_run_config(cls, **kwargs) -> dict[str, Any]:
        return {
            "cpu_cores": kwargs.get("cpu_cores", 8),
            "cpu_utilization": kwargs.get("cpu_utilization", 0.4),
            "memory_total_mb": kwargs.get("memory_total_mb", 32768),
            "memory_available_mb": kwargs.get("memory_available_mb", 18432),
        }


class SystemHardwareConfig(BaseModel):
    """Reads the host through psutil.

    :param cpu_sample_interval: Seconds psutil samples CPU load over; 0 compares against the previous call
    :param physical_cores: Count physical rather than logical cores
    """

    cpu_sample_interval: float = Field(default=0.1, ge=0)
    physical_cores: bool = True
