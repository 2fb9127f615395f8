# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Deterministic fingerprints for fine-tuning requests.

Two requests share a fingerprint when they target the same category,
purpose, domain and learner skill level and their training sets have the
same size and the same evenly spaced samples.
"""

import json
import re
from typing import Any

from finetune_stack_api import FineTuningRequest

CACHE_KEY_PREFIX = "finetuning_"
MAX_SAMPLES = 5
SAMPLE_PREFIX_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")


def utf16_code_units(text: str) -> list[int]:
    """UTF-16 code units of `text`; characters outside the BMP become surrogate pairs."""
    data = text.encode("utf-16-le", errors="surrogatepass")
    return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def rolling_hash(text: str | list[int]) -> int:
    """32-bit ``hash * 31 + code`` rolling hash, as a non-negative int.

    Codes are UTF-16 code units: characters outside the BMP hash as
    surrogate pairs.
    """
    units = utf16_code_units(text) if isinstance(text, str) else text
    h = 0
    for unit in units:
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def canonical_json(value: Any) -> str:
    # Sorted keys and fixed separators keep the string stable regardless of
    # the insertion order of the caller's dicts.
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def sample_records(data: list[dict[str, Any]], max_samples: int = MAX_SAMPLES) -> list[dict[str, Any]]:
    """Pick up to `max_samples` evenly spaced records, in order."""
    sample_size = min(max_samples, len(data))
    if sample_size == 0:
        return []
    step = len(data) / sample_size
    return [data[int(i * step)] for i in range(sample_size)]


def fingerprint_training_data(data: list[dict[str, Any]]) -> str:
    """``{count}_{prefixLength}_{hash}`` over a whitespace-free sample prefix, or ``empty``.

    The prefix length is counted in UTF-16 code units.
    """
    if not data:
        return "empty"
    sample_string = _WHITESPACE.sub("", canonical_json(sample_records(data)))
    prefix = utf16_code_units(sample_string)[:SAMPLE_PREFIX_LENGTH]
    return f"{len(data)}_{len(prefix)}_{rolling_hash(prefix)}"


class CacheKeyBuilder:
    """Builds the result-cache key for a request."""

    def build(self, request: FineTuningRequest) -> str:
        learner_level = None
        if request.learner_profile is not None:
            learner_level = request.learner_profile.skill_level
        # Field order is fixed here, not left to serialization.
        key_fields = [
            ("modelType", request.model_type),
            ("purpose", request.purpose),
            ("targetDomain", request.target_domain),
            ("learnerLevel", learner_level or "any"),
            ("dataHash", fingerprint_training_data(request.training_data)),
        ]
        body = ",".join(f"{json.dumps(name)}:{json.dumps(value, ensure_ascii=False)}" for name, value in key_fields)
        return CACHE_KEY_PREFIX + "{" + body + "}"
