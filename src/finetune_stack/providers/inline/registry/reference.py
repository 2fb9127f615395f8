# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""In-memory reference implementation of the ModelRegistry protocol."""

import asyncio
from datetime import UTC, datetime
from typing import Any

from finetune_stack.log import get_logger
from finetune_stack_api import (
    LearnerProfile,
    ModelEvaluationResult,
    ModelListFilters,
    ModelMetadata,
    ModelStatus,
    RegisteredModel,
)
from finetune_stack_api.fine_tuning.models import utc_now_iso

logger = get_logger(__name__, category="providers")

# Models in these states are never offered for reuse
_NOT_REUSABLE = {ModelStatus.TRAINING, ModelStatus.FAILED, ModelStatus.ARCHIVED}


def _skill_level(profile: LearnerProfile | None) -> str | None:
    return profile.skill_level if profile is not None else None


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


class InMemoryModelRegistry:
    """Keeps registered models in a dict; suitable for development and tests.

    Two models are similar when they share category, purpose, target domain
    and learner skill level. The most recently used similar model wins.
    """

    def __init__(self) -> None:
        self._models: dict[str, RegisteredModel] = {}
        self._lock = asyncio.Lock()

    async def find_similar_model(
        self,
        model_type: str,
        purpose: str,
        target_domain: str,
        learner_profile: LearnerProfile | None,
    ) -> RegisteredModel | None:
        async with self._lock:
            candidates = [
                model
                for model in self._models.values()
                if model.status not in _NOT_REUSABLE
                and model.metadata.base_model_type == model_type
                and model.metadata.purpose == purpose
                and model.metadata.target_domain == target_domain
                and _skill_level(model.metadata.learner_profile_target) == _skill_level(learner_profile)
            ]
            if not candidates:
                return None
            return max(candidates, key=lambda m: m.metadata.last_used)

    async def record_model_usage(self, model_id: str) -> None:
        async with self._lock:
            model = self._models.get(model_id)
            if model is None:
                logger.warning(f"Usage recorded for unknown model {model_id}")
                return
            metadata = model.metadata.model_copy(update={"last_used": utc_now_iso()})
            self._models[model_id] = model.model_copy(
                update={"metadata": metadata, "usage_count": model.usage_count + 1}
            )

    async def register_model(
        self,
        model_id: str,
        metadata: ModelMetadata,
        evaluation: ModelEvaluationResult,
        model_size: float,
    ) -> None:
        async with self._lock:
            if model_id in self._models:
                logger.info(f"Re-registering model {model_id}")
            self._models[model_id] = RegisteredModel(
                model_id=model_id,
                metadata=metadata,
                metrics=dict(evaluation.metrics),
                status=ModelStatus.REGISTERED,
                model_size=model_size,
            )
        logger.info(f"Registered model {model_id} ({metadata.base_model_type}, {metadata.purpose})")

    async def update_model_status(self, model_id: str, status: ModelStatus, details: dict[str, Any]) -> None:
        async with self._lock:
            model = self._models.get(model_id)
            if model is None:
                raise ValueError(f"Cannot update status of unknown model '{model_id}'")
            self._models[model_id] = model.model_copy(update={"status": status, "status_details": dict(details)})

    async def get_model_info(self, model_id: str) -> RegisteredModel | None:
        async with self._lock:
            return self._models.get(model_id)

    async def list_models(self, filters: ModelListFilters | None = None) -> list[RegisteredModel]:
        async with self._lock:
            models = list(self._models.values())
        if filters is None:
            return models
        return [model for model in models if self._matches(model, filters)]

    @staticmethod
    def _matches(model: RegisteredModel, filters: ModelListFilters) -> bool:
        metadata = model.metadata
        if filters.purpose is not None and metadata.purpose != filters.purpose:
            return False
        if filters.target_domain is not None and metadata.target_domain != filters.target_domain:
            return False
        if filters.model_type is not None and metadata.base_model_type != filters.model_type:
            return False
        if filters.status is not None and model.status != filters.status:
            return False
        if filters.min_accuracy is not None and model.metrics.get("accuracy", 0.0) < filters.min_accuracy:
            return False
        if filters.created_after is not None:
            created_after = filters.created_after
            if created_after.tzinfo is None:
                created_after = created_after.replace(tzinfo=UTC)
            if _parse_timestamp(metadata.created_at) <= created_after:
                return False
        if filters.tags and not set(filters.tags).issubset(metadata.tags):
            return False
        return True

    async def delete_model(self, model_id: str) -> bool:
        async with self._lock:
            return self._models.pop(model_id, None) is not None
