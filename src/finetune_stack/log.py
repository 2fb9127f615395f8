# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Category-aware logging for the Fine-Tuning Stack.

Levels are configured per category through the FINETUNE_STACK_LOGGING
environment variable, e.g. ``all=WARNING;fine_tuning=DEBUG;cache=INFO``.
"""

import logging
import os
import sys
from logging import LoggerAdapter

from rich.logging import RichHandler

CATEGORIES = [
    "core",
    "fine_tuning",
    "cache",
    "providers",
    "telemetry",
    "server",
    "uncategorized",
]

DEFAULT_LOG_LEVEL = logging.INFO
LOGGING_ENV_VAR = "FINETUNE_STACK_LOGGING"

_handler_installed = False


class _CategoryDefaultFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "category"):
            record.category = "uncategorized"
        return True


def parse_logging_config(config: str) -> dict[str, int]:
    """Parse a ``category=LEVEL;category=LEVEL`` string.

    ``all`` applies to every category; explicit categories override it
    regardless of their position in the string. Unknown categories and
    levels are ignored.
    """
    category_levels: dict[str, int] = {}
    all_level: int | None = None
    for item in config.split(";"):
        item = item.strip()
        if not item or "=" not in item:
            continue
        category, level_name = (part.strip() for part in item.split("=", 1))
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            continue
        if category == "all":
            all_level = level
        elif category in CATEGORIES:
            category_levels[category] = level

    if all_level is not None:
        for category in CATEGORIES:
            category_levels.setdefault(category, all_level)
    return category_levels


def _install_handler() -> None:
    global _handler_installed
    if _handler_installed:
        return

    if sys.stderr.isatty():
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("[%(category)s] %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(category)s] %(name)s: %(message)s"))

    handler.addFilter(_CategoryDefaultFilter())

    root = logging.getLogger("finetune_stack")
    root.addHandler(handler)
    root.propagate = False
    _handler_installed = True


def get_logger(name: str, category: str = "uncategorized") -> LoggerAdapter:
    """Return a logger tagged with `category` and leveled from the environment."""
    _install_handler()
    if category not in CATEGORIES:
        category = "uncategorized"

    # Loggers outside the package namespace still render through our handler.
    logger_name = name if name == "finetune_stack" or name.startswith("finetune_stack.") else f"finetune_stack.{name}"
    logger = logging.getLogger(logger_name)
    levels = parse_logging_config(os.environ.get(LOGGING_ENV_VAR, ""))
    logger.setLevel(levels.get(category, DEFAULT_LOG_LEVEL))
    return LoggerAdapter(logger, {"category": category})
