# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

"""Unit tests for cache store base classes and utilities."""

import time

from finetune_stack.providers.utils.cache import CacheError, CacheStore, CircuitBreaker, MemoryCacheStore


class TestCacheError:
    """Test suite for CacheError exception."""

    def test_init_with_message(self):
        error = CacheError("Failed to connect to cache")
        assert str(error) == "Failed to connect to cache"
        assert error.cause is None

    def test_init_with_cause(self):
        cause = ValueError("Invalid value")
        error = CacheError("Failed to set cache key", cause=cause)
        assert str(error) == "Failed to set cache key"
        assert error.cause == cause


class TestCacheStoreProtocol:
    def test_memory_store_satisfies_protocol(self):
        assert isinstance(MemoryCacheStore(), CacheStore)


class TestCircuitBreaker:
    """Test suite for CircuitBreaker."""

    def test_init_default_params(self):
        breaker = CircuitBreaker()
        assert breaker.failure_threshold == 5
        assert breaker.recovery_timeout == 30.0
        assert breaker.failure_count == 0
        assert breaker.last_failure_time is None
        assert breaker.state == "CLOSED"

    def test_is_closed_initial_state(self):
        breaker = CircuitBreaker()
        assert breaker.is_closed() is True
        assert breaker.get_state() == "CLOSED"

    def test_opens_after_threshold(self):
        breaker = CircuitBreaker(failure_threshold=3)
        for _ in range(2):
            breaker.record_failure()
        assert breaker.is_closed() is True

        breaker.record_failure()
        assert breaker.get_state() == "OPEN"
        assert breaker.is_closed() is False

    def test_success_resets_failures(self):
        breaker = CircuitBreaker(failure_threshold=3)
        breaker.record_failure()
        breaker.record_failure()
        breaker.record_success()
        assert breaker.failure_count == 0
        breaker.record_failure()
        assert breaker.get_state() == "CLOSED"

    def test_half_open_after_recovery_timeout(self, monkeypatch):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=10)
        breaker.record_failure()
        assert breaker.is_closed() is False

        now = time.monotonic()
        monkeypatch.setattr(time, "monotonic", lambda: now + 11)
        assert breaker.is_closed() is True
        assert breaker.get_state() == "HALF_OPEN"

    def test_failed_probe_reopens(self, monkeypatch):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=10)
        breaker.record_failure()
        now = time.monotonic()
        monkeypatch.setattr(time, "monotonic", lambda: now + 11)
        breaker.is_closed()

        breaker.record_failure()
        assert breaker.get_state() == "OPEN"

    def test_successful_probe_closes(self, monkeypatch):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=10)
        breaker.record_failure()
        now = time.monotonic()
        monkeypatch.setattr(time, "monotonic", lambda: now + 11)
        breaker.is_closed()

        breaker.record_success()
        assert breaker.get_state() == "CLOSED"

    def test_reset(self):
        breaker = CircuitBreaker(failure_threshold=1)
        breaker.record_failure()
        breaker.reset()
        assert breaker.get_state() == "CLOSED"
        assert breaker.failure_count == 0
