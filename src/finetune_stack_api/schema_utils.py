# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.


def json_schema_type(cls):
    """
    Decorator to mark a Pydantic model for top-level component registration.

    Models marked with this decorator are registered as top-level components
    in the OpenAPI schema, while unmarked models are inlined.
    """
    cls._finetune_stack_schema_type = True
    return cls
