# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from finetune_stack.log import get_logger

logger = get_logger(__name__, category="fine_tuning")

T = TypeVar("T")


@dataclass
class _Flight(Generic[T]):
    task: asyncio.Task[T]
    waiters: int = 0


class SingleFlight(Generic[T]):
    """At most one in-flight computation per key.

    The first caller for a key starts the computation in a task owned by the
    flight; every caller, the first included, awaits that task and receives
    its result or exception. A caller that is cancelled only stops waiting:
    the computation is cancelled once no caller is left waiting for it. The
    key is released as soon as the computation settles.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, _Flight[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, fn: Callable[[], Coroutine[Any, Any, T]]) -> T:
        flight = self._inflight.get(key)
        if flight is None:
            flight = _Flight(task=asyncio.create_task(fn()))
            self._inflight[key] = flight
            flight.task.add_done_callback(lambda task: self._settle(key, task))
        else:
            logger.debug(f"Joining in-flight computation for {key}")

        flight.waiters += 1
        try:
            # a cancelled caller must not cancel the computation other callers wait on
            return await asyncio.shield(flight.task)
        finally:
            flight.waiters -= 1
            if flight.waiters == 0 and not flight.task.done():
                logger.debug(f"No callers left waiting for {key}, cancelling")
                flight.task.cancel()

    def _settle(self, key: str, task: asyncio.Task[T]) -> None:
        flight = self._inflight.get(key)
        if flight is not None and flight.task is task:
            del self._inflight[key]
        if not task.cancelled():
            # retrieved here so a result nobody waits for does not log "exception was never retrieved"
            task.exception()
