# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Cache store abstraction backing the fine-tuning result cache.

A store is one retention tier: a bounded key-value map with per-entry
expiration. The tiered result cache composes several of them.
"""

import time
from typing import Any, Protocol, runtime_checkable

from finetune_stack.log import get_logger

logger = get_logger(__name__, category="cache")


@runtime_checkable
class CacheStore(Protocol):
    """Protocol defining a single cache tier.

    Implementations must support TTL-based expiration and report which
    entry they would evict next so callers can demote it instead of losing it.
    """

    async def get(self, key: str) -> Any | None:
        """Retrieve a value, or None if absent or expired.

        Raises:
            CacheError: If the backend operation fails
        """
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value with an optional TTL in seconds (default TTL if None).

        Raises:
            CacheError: If the backend operation fails
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed.

        Raises:
            CacheError: If the backend operation fails
        """
        ...

    async def exists(self, key: str) -> bool: ...

    async def keys(self) -> list[str]:
        """List the keys of live (non-expired) entries."""
        ...

    async def clear(self) -> None: ...

    async def size(self) -> int: ...


class CacheError(Exception):
    """Exception raised for cache operation failures.

    The engine degrades gracefully when catching this exception: a failed
    read is treated as a miss and a failed write is skipped.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize cache error.

        Args:
            message: Error description (should start with "Failed to ...")
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.cause = cause


class CircuitBreaker:
    """Stops calling a failing cache backend for a while.

    States:
    - CLOSED: Normal operation, requests go through
    - OPEN: Too many consecutive failures, requests are skipped
    - HALF_OPEN: Recovery timeout elapsed, one request probes the backend

    Example:
        breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=30)
        if breaker.is_closed():
            try:
                result = await cache.get(key)
                breaker.record_success()
            except CacheError:
                breaker.record_failure()
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
    ):
        """Initialize circuit breaker.

        Args:
            failure_threshold: Number of consecutive failures before opening
            recovery_timeout: Seconds to wait before probing the backend again
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time: float | None = None
        self.state = "CLOSED"

    def is_closed(self) -> bool:
        """Check if the breaker lets an operation through."""
        if self.state == "CLOSED":
            return True

        if self.state == "OPEN":
            if (
                self.last_failure_time is not None
                and time.monotonic() - self.last_failure_time >= self.recovery_timeout
            ):
                self.state = "HALF_OPEN"
                logger.info("Result cache breaker HALF_OPEN, probing backend")
                return True
            return False

        return True

    def record_success(self) -> None:
        if self.state == "HALF_OPEN":
            logger.info("Result cache backend recovered, breaker CLOSED")
        self.failure_count = 0
        self.last_failure_time = None
        self.state = "CLOSED"

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == "HALF_OPEN":
            logger.warning("Result cache probe failed, breaker back to OPEN")
            self.state = "OPEN"
        elif self.failure_count >= self.failure_threshold:
            logger.error(
                f"Result cache breaker OPEN after {self.failure_count} failures; "
                f"cache bypassed for {self.recovery_timeout}s"
            )
            self.state = "OPEN"

    def get_state(self) -> str:
        return self.state

    def reset(self) -> None:
        """Manually reset the breaker to CLOSED."""
        self.failure_count = 0
        self.last_failure_time = None
        self.state = "CLOSED"
        logger.info("Result cache breaker manually reset to CLOSED")
