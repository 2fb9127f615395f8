# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Per-category validation and normalization of raw training records.

Records that fail a category's field checks are dropped silently; only a
wholly empty input set is an error.
"""

from collections.abc import Callable
from typing import Any

from finetune_stack.log import get_logger
from finetune_stack_api import EmptyDatasetError, ModelCategory, UnsupportedModelCategoryError

logger = get_logger(__name__, category="fine_tuning")

Record = dict[str, Any]
RecordNormalizer = Callable[[Record], Record | None]


def _non_empty_text(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _normalize_text_classification(record: Record) -> Record | None:
    if not _non_empty_text(record.get("text")) or record.get("label") is None:
        return None
    return {"text": record["text"].strip(), "label": str(record["label"])}


def _normalize_text_generation(record: Record) -> Record | None:
    if not _non_empty_text(record.get("input")) or not _non_empty_text(record.get("output")):
        return None
    return {
        "input": record["input"].strip(),
        "output": record["output"].strip(),
        "prompt_template": record.get("prompt_template") or None,
    }


def _normalize_image_classification(record: Record) -> Record | None:
    if not record.get("image") or record.get("label") is None:
        return None
    return {
        "image": record["image"],
        "label": str(record["label"]),
        "metadata": record.get("metadata") or {},
    }


def _normalize_multimodal(record: Record) -> Record | None:
    text = record.get("text")
    has_text = isinstance(text, str)
    has_image = bool(record.get("image"))
    if not (has_text or has_image) or record.get("label") is None:
        return None
    return {
        "text": text.strip() if has_text else None,
        "image": record.get("image") or None,
        "label": str(record["label"]),
        "metadata": record.get("metadata") or {},
    }


NORMALIZERS: dict[ModelCategory, RecordNormalizer] = {
    ModelCategory.TEXT_CLASSIFICATION: _normalize_text_classification,
    ModelCategory.TEXT_GENERATION: _normalize_text_generation,
    ModelCategory.IMAGE_CLASSIFICATION: _normalize_image_classification,
    ModelCategory.MULTIMODAL: _normalize_multimodal,
}


def parse_model_category(model_type: str | ModelCategory) -> ModelCategory:
    try:
        return ModelCategory(model_type)
    except ValueError as e:
        raise UnsupportedModelCategoryError(str(model_type), [c.value for c in ModelCategory]) from e


class DataPreprocessor:
    def process(self, raw_records: list[Record], model_type: str | ModelCategory) -> list[Record]:
        """Return the normalized records that pass the category's checks.

        :raises EmptyDatasetError: if `raw_records` is empty
        :raises UnsupportedModelCategoryError: if `model_type` is not a known category
        """
        if not raw_records:
            raise EmptyDatasetError()
        category = parse_model_category(model_type)
        normalize = NORMALIZERS[category]

        processed = [r for r in (normalize(record) for record in raw_records if isinstance(record, dict)) if r]
        dropped = len(raw_records) - len(processed)
        if dropped:
            logger.debug(f"Dropped {dropped} of {len(raw_records)} {category.value} records failing field checks")
        return processed
