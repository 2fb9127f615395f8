# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""FastAPI router for the Fine-Tuning API."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Body, Path, Query

from finetune_stack_api.router_utils import standard_responses
from finetune_stack_api.version import FINETUNE_STACK_API_V1

from .api import FineTuning
from .models import (
    DeleteModelResponse,
    FineTuningRequest,
    FineTuningResult,
    ListModelsResponse,
    ModelInfo,
    ModelListFilters,
    ModelStatus,
    SetOperationModeRequest,
)


def create_router(impl: FineTuning) -> APIRouter:
    """Create FastAPI router for the fine-tuning API."""
    router = APIRouter(
        prefix=f"/{FINETUNE_STACK_API_V1}",
        tags=["Fine-tuning"],
        responses=standard_responses,
    )

    @router.post(
        "/fine_tuning/models",
        response_model=FineTuningResult,
        summary="Fine-tune a model",
        description="Produce a specialized model, reusing a registered or cached one when possible.",
        responses={200: {"description": "Fine-tuning outcome, successful or not"}},
    )
    async def fine_tune_model(
        request: Annotated[FineTuningRequest, Body(...)],
    ) -> FineTuningResult:
        return await impl.fine_tune_model(request)

    @router.get(
        "/fine_tuning/models",
        response_model=ListModelsResponse,
        summary="List fine-tuned models",
        description="List registered models, optionally filtered.",
        responses={200: {"description": "List of registered models"}},
    )
    async def list_models(
        purpose: str | None = None,
        target_domain: str | None = None,
        model_type: str | None = None,
        min_accuracy: Annotated[float | None, Query(ge=0, le=1)] = None,
        status: ModelStatus | None = None,
        created_after: datetime | None = None,
        tags: Annotated[list[str] | None, Query()] = None,
    ) -> ListModelsResponse:
        filters = ModelListFilters(
            purpose=purpose,
            target_domain=target_domain,
            model_type=model_type,
            min_accuracy=min_accuracy,
            status=status,
            created_after=created_after,
            tags=tags,
        )
        return ListModelsResponse(data=await impl.list_models(filters))

    @router.get(
        "/fine_tuning/models/{model_id}",
        response_model=ModelInfo,
        summary="Retrieve a fine-tuned model",
        description="Get registry information and serving performance for a model.",
        responses={200: {"description": "Model details"}},
    )
    async def get_model_info(
        model_id: Annotated[str, Path(description="Model ID")],
    ) -> ModelInfo:
        return await impl.get_model_info(model_id)

    @router.delete(
        "/fine_tuning/models/{model_id}",
        response_model=DeleteModelResponse,
        summary="Delete a fine-tuned model",
        description="Delete a model from the registry and evict its cached results.",
        responses={200: {"description": "Deletion outcome"}},
    )
    async def delete_model(
        model_id: Annotated[str, Path(description="Model ID")],
    ) -> DeleteModelResponse:
        deleted = await impl.delete_model(model_id)
        return DeleteModelResponse(model_id=model_id, deleted=deleted)

    @router.put(
        "/fine_tuning/operation_mode",
        summary="Pin the operation mode",
        description="Set the execution mode used for requests that prefer 'auto'.",
        status_code=204,
    )
    async def set_operation_mode(
        request: Annotated[SetOperationModeRequest, Body(...)],
    ) -> None:
        impl.set_operation_mode(request.mode)

    @router.delete(
        "/fine_tuning/cache",
        summary="Clear the result cache",
        description="Drop every cached fine-tuning result.",
        status_code=204,
    )
    async def clear_cache() -> None:
        await impl.clear_cache()

    return router
