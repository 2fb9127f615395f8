# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Shared exception mappings for HTTP status code translation.

Errors of the Fine-Tuning Stack taxonomy carry their own status code; this
module covers the standard library exceptions that collaborators may raise.
"""

import asyncio

import httpx
from fastapi import HTTPException

from finetune_stack_api import FineTuningStackError

# Maps exception type -> (status_code, detail_template)
# Use {e} in template to insert the exception message
EXCEPTION_MAP: dict[type, tuple[int, str]] = {
    ValueError: (httpx.codes.BAD_REQUEST, "Invalid value: {e}"),
    KeyError: (httpx.codes.NOT_FOUND, "Not found: {e}"),
    PermissionError: (httpx.codes.FORBIDDEN, "Permission denied: {e}"),
    ConnectionError: (httpx.codes.BAD_GATEWAY, "{e}"),
    httpx.ConnectError: (httpx.codes.BAD_GATEWAY, "{e}"),
    TimeoutError: (httpx.codes.GATEWAY_TIMEOUT, "Operation timed out: {e}"),
    asyncio.TimeoutError: (httpx.codes.GATEWAY_TIMEOUT, "Operation timed out: {e}"),
    NotImplementedError: (httpx.codes.NOT_IMPLEMENTED, "Not implemented: {e}"),
}


def translate_exception_to_http(exc: Exception) -> HTTPException | None:
    """Translate an exception to an HTTPException.

    Stack errors translate themselves. Otherwise walks up the exception's
    MRO and returns the first match in EXCEPTION_MAP, or None.
    """
    if isinstance(exc, FineTuningStackError):
        return exc.http_exception()
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_MAP:
            status_code, template = EXCEPTION_MAP[cls]
            return HTTPException(status_code=status_code, detail=template.format(e=exc))
    return None
