# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from .cache_key import CacheKeyBuilder
from .config import FineTuningEngineConfig
from .mode_selector import ModeSelector, ModeThresholds, ModeTier
from .orchestrator import FineTuningOrchestrator
from .parameters import ParameterConfigurer
from .preprocessing import DataPreprocessor
from .single_flight import SingleFlight

__all__ = [
    "CacheKeyBuilder",
    "DataPreprocessor",
    "FineTuningEngineConfig",
    "FineTuningOrchestrator",
    "ModeSelector",
    "ModeThresholds",
    "ModeTier",
    "ParameterConfigurer",
    "SingleFlight",
]
