# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Standard error response definitions shared by the FastAPI routers."""

from typing import Any

standard_responses: dict[int | str, dict[str, Any]] = {
    400: {"description": "The request was invalid"},
    404: {"description": "The referenced resource does not exist"},
    500: {"description": "Internal server error"},
    502: {"description": "A downstream collaborator failed"},
    504: {"description": "The request exceeded its deadline"},
}
