# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

from unittest.mock import AsyncMock

import pytest

from finetune_stack.core.fine_tuning import FineTuningEngineConfig, FineTuningOrchestrator
from finetune_stack.providers.inline.hardware import StaticHardwareSnapshotProvider
from finetune_stack.providers.utils.cache import TieredResultCache
from finetune_stack_api import (
    FineTuningRequest,
    ModelEvaluationResult,
    OverfittingAnalysis,
    TrainedModel,
    TrainingMetrics,
)


def _build_request(**overrides) -> FineTuningRequest:
    fields = {
        "model_type": "text-classification",
        "purpose": "question-routing",
        "target_domain": "mathematics",
        "training_data": [
            {"text": "What is 2+2?", "label": "arithmetic"},
            {"text": "Solve x^2 = 4", "label": "algebra"},
            {"text": "  Area of a circle  ", "label": "geometry"},
        ],
        "validation_data": [{"text": "What is 3+3?", "label": "arithmetic"}],
        "evaluation_data": [{"text": "What is 5+5?", "label": "arithmetic"}],
    }
    fields.update(overrides)
    return FineTuningRequest(**fields)


@pytest.fixture
def make_request():
    """Factory for a small, valid text-classification request."""
    return _build_request


@pytest.fixture
def trained_model():
    return TrainedModel(
        model_id="ft-model-1",
        model_size=100,
        training_metrics=TrainingMetrics(final_loss=0.21, validation_loss=0.34),
    )


@pytest.fixture
def optimized_model():
    return TrainedModel(
        model_id="ft-model-1-optimized",
        model_size=60,
        training_metrics=TrainingMetrics(final_loss=0.25, validation_loss=0.3),
    )


@pytest.fixture
def registry():
    registry = AsyncMock()
    registry.find_similar_model.return_value = None
    registry.delete_model.return_value = True
    return registry


@pytest.fixture
def trainer(trained_model, optimized_model):
    trainer = AsyncMock()
    trainer.train_model.return_value = trained_model
    trainer.optimize_model.return_value = optimized_model
    return trainer


@pytest.fixture
def evaluator():
    evaluator = AsyncMock()
    evaluator.evaluate_model.return_value = ModelEvaluationResult(
        model_id="ft-model-1", metrics={"accuracy": 0.91, "f1_score": 0.88}
    )
    return evaluator


@pytest.fixture
def overfitting_detector():
    detector = AsyncMock()
    detector.detect_overfitting.return_value = OverfittingAnalysis(
        is_overfitting=False, recommended_pruning_threshold=0.1
    )
    return detector


@pytest.fixture
def engine_config():
    return FineTuningEngineConfig(retry_backoff_seconds=0)


@pytest.fixture
def orchestrator(engine_config, registry, trainer, evaluator, overfitting_detector):
    return FineTuningOrchestrator(
        config=engine_config,
        registry=registry,
        trainer=trainer,
        evaluator=evaluator,
        overfitting_detector=overfitting_detector,
        hardware_provider=StaticHardwareSnapshotProvider(),
        result_cache=TieredResultCache(),
    )
