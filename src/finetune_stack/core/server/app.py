# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import traceback

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from finetune_stack.core.exceptions.mapping import translate_exception_to_http
from finetune_stack.log import get_logger
from finetune_stack_api import DeploymentError, FineTuning, FineTuningStackError, __version__
from finetune_stack_api.fine_tuning.fastapi_routes import create_router

logger = get_logger(__name__, category="server")


def translate_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, ValidationError):
        exc = RequestValidationError(exc.errors())

    if isinstance(exc, RequestValidationError):
        return HTTPException(
            status_code=httpx.codes.BAD_REQUEST,
            detail={
                "errors": [
                    {
                        "loc": list(error["loc"]),
                        "msg": error["msg"],
                        "type": error["type"],
                    }
                    for error in exc.errors()
                ]
            },
        )

    http_exc = translate_exception_to_http(exc)
    if http_exc is not None:
        return http_exc
    return HTTPException(
        status_code=httpx.codes.INTERNAL_SERVER_ERROR,
        detail="Internal server error: An unexpected error occurred.",
    )


async def global_exception_handler(request: Request, exc: Exception):
    http_exc = translate_exception(exc)

    # Only log full tracebacks for unexpected server errors (5xx), not expected client errors
    if http_exc.status_code >= 500:
        traceback.print_exception(exc)
    elif http_exc.status_code >= 400:
        logger.debug(f"Client error {http_exc.status_code}: {http_exc.detail}")

    content: dict = {"error": {"detail": http_exc.detail}}
    if isinstance(exc, DeploymentError) and exc.result is not None:
        # the model is registered even though deployment failed
        content["error"]["result"] = exc.result.model_dump(mode="json")
    return JSONResponse(status_code=http_exc.status_code, content=content)


def create_app(impl: FineTuning) -> FastAPI:
    """Build the HTTP application serving `impl`."""
    app = FastAPI(
        title="Fine-Tuning Stack",
        description="Fine-tuning orchestration and result caching",
        version=__version__,
    )
    app.include_router(create_router(impl))
    app.exception_handler(RequestValidationError)(global_exception_handler)
    app.exception_handler(FineTuningStackError)(global_exception_handler)
    app.exception_handler(Exception)(global_exception_handler)
    return app
