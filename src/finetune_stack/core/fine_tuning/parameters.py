# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Training parameter resolution.

Precedence, lowest to highest: built-in defaults, category overrides, mode
overrides, user-supplied parameters.
"""

from collections.abc import Callable
from typing import Any

from finetune_stack_api import ModelCategory, OperationMode, TrainingParameters

from .preprocessing import parse_model_category

DEFAULT_PARAMETERS: dict[str, Any] = {
    "epochs": 3,
    "batch_size": 16,
    "learning_rate": 2e-5,
    "evaluation_strategy": "epoch",
    "warmup_steps": 500,
    "weight_decay": 0.01,
}

LOCAL_MAX_BATCH_SIZE = 8


def _text_classification(dataset_size: int) -> dict[str, Any]:
    return {"batch_size": 32, "epochs": 5 if dataset_size < 1000 else 3}


def _text_generation(dataset_size: int) -> dict[str, Any]:
    return {"batch_size": 8, "learning_rate": 5e-5, "epochs": 4 if dataset_size < 500 else 2}


def _image_classification(dataset_size: int) -> dict[str, Any]:
    return {"batch_size": 16, "epochs": 10, "learning_rate": 1e-4}


def _multimodal(dataset_size: int) -> dict[str, Any]:
    return {"batch_size": 4, "epochs": 2, "learning_rate": 1e-5}


CATEGORY_OVERRIDES: dict[ModelCategory, Callable[[int], dict[str, Any]]] = {
    ModelCategory.TEXT_CLASSIFICATION: _text_classification,
    ModelCategory.TEXT_GENERATION: _text_generation,
    ModelCategory.IMAGE_CLASSIFICATION: _image_classification,
    ModelCategory.MULTIMODAL: _multimodal,
}


def _local(batch_size: int) -> dict[str, Any]:
    return {
        "batch_size": min(batch_size, LOCAL_MAX_BATCH_SIZE),
        "fp16": True,
        "gradient_accumulation_steps": 2,
        "cpu_threads": 6,
    }


def _hybrid(batch_size: int) -> dict[str, Any]:
    return {"fp16": True, "offload_optimizer": True, "gradient_checkpointing": True}


def _cloud(batch_size: int) -> dict[str, Any]:
    return {"batch_size": batch_size * 2, "fp16": True}


# Mode overrides are computed from the batch size already in effect.
MODE_OVERRIDES: dict[OperationMode, Callable[[int], dict[str, Any]]] = {
    OperationMode.LOCAL: _local,
    OperationMode.HYBRID: _hybrid,
    OperationMode.CLOUD: _cloud,
}


class ParameterConfigurer:
    def configure(
        self,
        user_params: TrainingParameters | None,
        model_type: str | ModelCategory,
        dataset_size: int,
        mode: OperationMode,
    ) -> TrainingParameters:
        if mode == OperationMode.AUTO:
            raise ValueError("Training parameters require a resolved execution mode, got 'auto'")
        category = parse_model_category(model_type)

        params = dict(DEFAULT_PARAMETERS)
        params.update(CATEGORY_OVERRIDES[category](dataset_size))
        params.update(MODE_OVERRIDES[mode](params["batch_size"]))
        if user_params is not None:
            # an explicit null leaves the computed value in place
            params.update(user_params.model_dump(exclude_unset=True, exclude_none=True))
        return TrainingParameters(**params)
