"""Tests for the Retry condition."""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest

from kondition import (
    Error,
    Retry,
    check_that,
    equal_to,
    evaluate,
    explain,
    repeat_max,
)


def supplier(*values):
    """Return a callable yielding the given values one per call."""
    remaining = iter(values)
    return lambda: next(remaining)


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    def test_succeeds_first_try(self):
        r = Retry(equal_to("done"), max_attempts=3)
        result = r.evaluate(supplier("done"))
        assert result.passed
        assert result.value == "Matched on attempt 1"
        assert len(result.result.results) == 1

    def test_succeeds_after_failures(self):
        r = Retry(equal_to("done"), max_attempts=5)
        result = r.evaluate(supplier("new", "running", "done"))
        assert result.passed
        assert result.value == "Matched on attempt 3"
        assert len(result.result.results) == 3

    def test_exhausts_all_attempts(self):
        calls = 0

        def status():
            nonlocal calls
            calls += 1
            return "running"

        r = Retry(equal_to("done"), max_attempts=3)
        result = r.evaluate(status)
        assert result.failed
        assert result.value == "Not matched in 3 attempts"
        assert calls == 3

    def test_supplier_exception_counts_as_attempt(self):
        attempts = 0

        def flaky():
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise ConnectionError(f"attempt {attempts} failed")
            return "done"

        result = Retry(equal_to("done"), max_attempts=5).evaluate(flaky)
        assert result.passed
        first, second, third = result.result.results
        assert isinstance(first, Error)
        assert isinstance(second, Error)
        assert third.passed

    def test_backoff_delay(self):
        r = Retry(equal_to("done"), max_attempts=2, backoff=0.02)
        start = time.monotonic()
        r.evaluate(lambda: "running")
        assert time.monotonic() - start >= 0.02

    def test_exponential_backoff(self):
        delays = []

        def on_retry(attempt, result, delay):
            delays.append(delay)

        r = Retry(
            equal_to("done"),
            max_attempts=4,
            backoff=0.001,
            exponential=True,
            on_retry=on_retry,
        )
        r.evaluate(lambda: "running")

        # Delays should be 0.001, 0.002, 0.004 (exponential, no jitter)
        assert len(delays) == 3
        assert delays[0] < delays[1] < delays[2]

    def test_jitter(self):
        r = Retry(equal_to("done"), backoff=0.01, jitter=0.01)
        for attempt in range(5):
            assert 0.01 <= r._get_delay(attempt) <= 0.02

    def test_zero_backoff_has_no_delay(self):
        assert Retry(equal_to("done"), jitter=1.0)._get_delay(3) == 0

    def test_on_retry_callback(self):
        callback = MagicMock()
        r = Retry(equal_to("done"), max_attempts=3, on_retry=callback)
        assert r.evaluate(supplier("a", "b", "done")).passed
        assert callback.call_count == 2

        # Verify callback args: (attempt, result, delay)
        first_call = callback.call_args_list[0]
        assert first_call[0][0] == 1  # attempt
        assert first_call[0][1].failed  # result
        assert first_call[0][2] == 0  # delay

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            Retry(equal_to("done"), max_attempts=0)

    def test_str(self):
        assert str(Retry(equal_to("done"), max_attempts=5)) == "<done> within 5 attempts"
        assert str(Retry(equal_to("done"), name="job finished")) == (
            "job finished within 3 attempts"
        )

    def test_message(self):
        result = evaluate(lambda: "x", repeat_max(equal_to("done"), 2))
        assert str(result) == (
            "expected: <done> within 2 attempts but was: Not matched in 2 attempts"
            "\n\t+ expected: <done> but was: <x>"
            "\n\t+ expected: <done> but was: <x>"
        )

    def test_error_message(self):
        def broken():
            raise KeyError("status")

        result = evaluate(broken, repeat_max(equal_to("done"), 1))
        assert str(result) == (
            "expected: <done> within 1 attempts but was: Not matched in 1 attempts"
            "\n\t+ expected: <done> but has thrown KeyError('status')"
        )

    def test_repeat_max(self):
        assert check_that(supplier(1, 2), repeat_max(equal_to(2), 2, delay=0.001))
        assert not check_that(supplier(1, 2), repeat_max(equal_to(2), 1))

    def test_condition_is_reusable(self):
        r = Retry(equal_to("done"), max_attempts=2)
        assert r.evaluate(supplier("x", "done")).passed
        assert r.evaluate(supplier("done")).value == "Matched on attempt 1"

    def test_explain(self):
        assert explain(repeat_max(equal_to("done"), 4)) == "Retry up to 4x: <done>"
