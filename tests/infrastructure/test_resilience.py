"""Tests for the rate limiter, circuit breaker and retry policy."""

import threading
import time

import pytest

from citysieve.exceptions import CircuitBreakerOpen
from citysieve.infrastructure import CircuitBreaker, RateLimiter, RetryPolicy


class TestCircuitBreaker:
    def test_closed_until_threshold(self) -> None:
        cb = CircuitBreaker(threshold=3)
        cb.record_failure()
        cb.record_failure()
        cb.check()
        assert not cb.is_open
        cb.record_failure()
        assert cb.is_open

    def test_open_circuit_refuses_calls(self) -> None:
        cb = CircuitBreaker(threshold=2, recovery_timeout_seconds=60)
        cb.record_failure()
        cb.record_failure()
        with pytest.raises(CircuitBreakerOpen) as exc_info:
            cb.check()
        assert exc_info.value.failure_count == 2
        assert exc_info.value.threshold == 2

    def test_success_resets_count(self) -> None:
        cb = CircuitBreaker(threshold=3)
        cb.record_failure()
        cb.record_failure()
        cb.record_success()
        assert cb.consecutive_failures == 0
        assert cb.state == "closed"

    def test_trial_call_after_recovery_timeout(self) -> None:
        cb = CircuitBreaker(threshold=1, recovery_timeout_seconds=0)
        cb.record_failure()
        cb.check()
        assert cb.state == "half_open"
        with pytest.raises(CircuitBreakerOpen):
            cb.check()
        cb.record_success()
        assert cb.state == "closed"

    def test_failed_trial_call_reopens(self) -> None:
        cb = CircuitBreaker(threshold=5, recovery_timeout_seconds=0)
        for _ in range(5):
            cb.record_failure()
        cb.check()
        cb.record_failure()
        assert cb.state == "open"

    def test_concurrent_failures_are_all_counted(self) -> None:
        cb = CircuitBreaker(threshold=1000)
        threads = [
            threading.Thread(target=lambda: [cb.record_failure() for _ in range(50)])
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert cb.consecutive_failures == 400


class TestRateLimiter:
    def test_minimum_delay_between_requests(self) -> None:
        rl = RateLimiter(max_rpm=600, min_delay_seconds=0.05)
        start = time.monotonic()
        rl.wait_if_needed()
        rl.wait_if_needed()
        assert time.monotonic() - start >= 0.05

    def test_counts_requests_in_current_minute(self) -> None:
        rl = RateLimiter(max_rpm=10, min_delay_seconds=0)
        for _ in range(4):
            rl.wait_if_needed()
        assert rl.requests_this_minute == 4

    def test_new_minute_resets_count(self) -> None:
        rl = RateLimiter(max_rpm=10, min_delay_seconds=0)
        rl.wait_if_needed()
        rl.minute_start -= 61
        rl.wait_if_needed()
        assert rl.requests_this_minute == 1


class TestRetryPolicy:
    def test_exponential_backoff_is_capped(self) -> None:
        policy = RetryPolicy(backoff_factor=0.5, max_backoff_seconds=3.0, jitter_seconds=0)
        assert [policy.compute_backoff(n) for n in range(4)] == [0.5, 1.0, 2.0, 3.0]

    def test_retry_after_wins_when_longer(self) -> None:
        policy = RetryPolicy(backoff_factor=0.1, jitter_seconds=0)
        assert policy.compute_backoff(0, retry_after=5) == 5.0

    def test_jitter_stays_in_bounds(self) -> None:
        policy = RetryPolicy(backoff_factor=1.0, jitter_seconds=0.2)
        for _ in range(20):
            assert 1.0 <= policy.compute_backoff(0) <= 1.2
