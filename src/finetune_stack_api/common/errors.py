# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

# Custom Fine-Tuning Stack exception classes should follow the following schema
#   1. All classes should inherit from an existing Built-In Exception class: https://docs.python.org/3/library/exceptions.html
#   2. All classes should have a custom error message with the goal of informing the caller specifically
#   3. All classes should propagate the inherited __init__ function otherwise via 'super().__init__(message)'
#   4. All classes should expose a machine-readable `code` used in FineTuningResult.error

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx
from fastapi import HTTPException

if TYPE_CHECKING:
    from finetune_stack_api.fine_tuning.models import FineTuningResult


class FineTuningStackError(Exception, ABC):
    """A Fine-Tuning Stack error that can be translated to a fastapi HTTPException"""

    code: str = "unknown_error"

    @property
    @abstractmethod
    def status_code(self) -> httpx.codes:
        """The HTTP status code for this exception"""
        ...

    def http_exception(self) -> HTTPException:
        """A fastapi HTTPException with the appropriate status code and detail"""
        return HTTPException(status_code=self.status_code, detail=str(self))


class FineTuningValidationError(ValueError, FineTuningStackError):
    """raised when a fine-tuning request cannot be processed as submitted"""

    code = "validation_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.BAD_REQUEST


class EmptyDatasetError(FineTuningValidationError):
    """raised when no usable training records were provided"""

    def __init__(self, message: str = "Empty training dataset provided") -> None:
        super().__init__(message)


class UnsupportedModelCategoryError(FineTuningValidationError):
    """raised when the requested model category has no preprocessing or parameter rules"""

    def __init__(self, model_type: str, supported: list[str]) -> None:
        message = f"Unsupported model type: {model_type}. Supported model types are: {', '.join(supported)}"
        super().__init__(message)
        self.model_type = model_type


class EvaluationError(RuntimeError, FineTuningStackError):
    """describes an evaluator failure; captured into the result, never raised out of the engine"""

    code = "evaluation_error"

    def __init__(self, model_id: str, reason: str) -> None:
        super().__init__(f"Evaluation of model '{model_id}' failed: {reason}")
        self.model_id = model_id
        self.reason = reason

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.INTERNAL_SERVER_ERROR


class DeploymentError(RuntimeError, FineTuningStackError):
    """raised when deployment fails after the model has already been registered

    `result` holds the two-phase outcome (registered=True, deployed=False) so
    callers can reach the registered model without querying the registry.
    """

    code = "deployment_error"

    def __init__(
        self,
        model_id: str,
        environment: str,
        reason: str,
        result: "FineTuningResult | None" = None,
    ) -> None:
        super().__init__(f"Deployment of model '{model_id}' to '{environment}' failed: {reason}")
        self.model_id = model_id
        self.environment = environment
        self.reason = reason
        self.result = result

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.BAD_GATEWAY


class UnsupportedDeploymentEnvironmentError(DeploymentError):
    """raised when the deployment environment is not one of local, cloud or edge"""

    def __init__(self, model_id: str, environment: str, result: "FineTuningResult | None" = None) -> None:
        super().__init__(model_id, environment, f"Unsupported deployment environment: {environment}", result)

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.BAD_REQUEST


class FineTuningTimeoutError(TimeoutError, FineTuningStackError):
    """raised when a fine-tuning request exceeds its deadline"""

    code = "timeout"

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Fine-tuning request exceeded its deadline of {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.GATEWAY_TIMEOUT


class ModelNotFoundError(ValueError, FineTuningStackError):
    """raised when the registry cannot find a referenced fine-tuned model"""

    code = "model_not_found"

    def __init__(self, model_id: str) -> None:
        super().__init__(f"Model '{model_id}' not found. Use 'list_models()' to list available models.")
        self.model_id = model_id

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.NOT_FOUND
