# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from types import SimpleNamespace

import pytest

from finetune_stack.providers.inline.hardware import (
    StaticHardwareConfig,
    StaticHardwareSnapshotProvider,
    SystemHardwareConfig,
    SystemHardwareSnapshotProvider,
)
from finetune_stack.providers.inline.hardware import system as system_module
from finetune_stack_api import HardwareSnapshotProvider


class TestStaticHardwareSnapshotProvider:
    async def test_default_reading(self):
        snapshot = await StaticHardwareSnapshotProvider().get_snapshot()

        assert snapshot.cpu.cores == 8
        assert snapshot.cpu.utilization == 0.4
        assert snapshot.memory.total == 32768
        assert snapshot.memory.available == 18432
        assert snapshot.memory.utilization == pytest.approx(0.4375)
        assert snapshot.gpu.available is True
        assert snapshot.gpu.model == "AMD Radeon Graphics"
        assert snapshot.gpu.memory == 2048
        assert snapshot.thermals.cpu_temperature == 65
        assert snapshot.thermals.gpu_temperature == 70

    async def test_without_gpu(self):
        provider = StaticHardwareSnapshotProvider(StaticHardwareConfig(gpu_available=False))
        assert (await provider.get_snapshot()).gpu is None

    def test_satisfies_protocol(self):
        assert isinstance(StaticHardwareSnapshotProvider(), HardwareSnapshotProvider)
        assert isinstance(SystemHardwareSnapshotProvider(), HardwareSnapshotProvider)

    def test_sample_run_config(self):
        config = StaticHardwareConfig(**StaticHardwareConfig.sample_run_config(cpu_cores=4))
        assert config.cpu_cores == 4


class TestSystemHardwareSnapshotProvider:
    @pytest.fixture
    def fake_psutil(self, monkeypatch):
        psutil = system_module.psutil
        monkeypatch.setattr(psutil, "cpu_count", lambda logical=True: 6 if not logical else 12)
        monkeypatch.setattr(psutil, "cpu_percent", lambda interval=None: 25.0)
        monkeypatch.setattr(
            psutil,
            "virtual_memory",
            lambda: SimpleNamespace(total=16 * 1024**3, available=4 * 1024**3, percent=75.0),
        )
        monkeypatch.setattr(
            psutil,
            "sensors_temperatures",
            lambda: {"coretemp": [SimpleNamespace(current=55.0)], "amdgpu": [SimpleNamespace(current=61.0)]},
            raising=False,
        )
        return psutil

    async def test_reads_psutil(self, fake_psutil):
        snapshot = await SystemHardwareSnapshotProvider(SystemHardwareConfig(cpu_sample_interval=0)).get_snapshot()

        assert snapshot.cpu.cores == 6
        assert snapshot.cpu.utilization == 0.25
        assert snapshot.memory.total == 16384
        assert snapshot.memory.available == 4096
        assert snapshot.memory.utilization == 0.75
        assert snapshot.gpu is None
        assert snapshot.thermals.cpu_temperature == 55.0
        assert snapshot.thermals.gpu_temperature == 61.0

    async def test_logical_cores(self, fake_psutil):
        config = SystemHardwareConfig(cpu_sample_interval=0, physical_cores=False)
        snapshot = await SystemHardwareSnapshotProvider(config).get_snapshot()
        assert snapshot.cpu.cores == 12

    async def test_missing_sensors(self, fake_psutil, monkeypatch):
        monkeypatch.delattr(fake_psutil, "sensors_temperatures", raising=False)
        snapshot = await SystemHardwareSnapshotProvider(SystemHardwareConfig(cpu_sample_interval=0)).get_snapshot()
        assert snapshot.thermals.cpu_temperature is None
        assert snapshot.thermals.gpu_temperature is None
