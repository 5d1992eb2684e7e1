"""Tests for rustmail.retry."""

from __future__ import annotations

import pytest

from rustmail.config import RetryConfig
from rustmail.retry import with_retry


@pytest.fixture
def fast_config() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_wait_seconds=0, max_wait_seconds=0)


class TestWithRetry:
    def test_succeeds_first_try(self, fast_config: RetryConfig):
        call_count = 0

        @with_retry(fast_config)
        def fn():
            nonlocal call_count
            call_count += 1
            return "ok"

        assert fn() == "ok"
        assert call_count == 1

    def test_retries_then_succeeds(self, fast_config: RetryConfig):
        call_count = 0

        @with_retry(fast_config)
        def fn():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ConnectionRefusedError("transient")
            return "recovered"

        assert fn() == "recovered"
        assert call_count == 3

    def test_exhausts_retries_and_raises(self, fast_config: RetryConfig):
        call_count = 0

        @with_retry(fast_config)
        def fn():
            nonlocal call_count
            call_count += 1
            raise TimeoutError("permanent")

        with pytest.raises(TimeoutError, match="permanent"):
            fn()
        assert call_count == 3

    def test_custom_retryable_exceptions(self):
        config = RetryConfig(max_attempts=5, initial_wait_seconds=0, max_wait_seconds=0)
        call_count = 0

        @with_retry(config, retryable_exceptions=(ConnectionRefusedError,))
        def fn():
            nonlocal call_count
            call_count += 1
            raise OSError("not retryable")

        with pytest.raises(OSError):
            fn()
        assert call_count == 1

    def test_single_attempt(self):
        config = RetryConfig(max_attempts=1, initial_wait_seconds=0, max_wait_seconds=0)
        call_count = 0

        @with_retry(config)
        def fn():
            nonlocal call_count
            call_count += 1
            raise RuntimeError("fail")

        with pytest.raises(RuntimeError):
            fn()
        assert call_count == 1
