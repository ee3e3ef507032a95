"""Repeated evaluation of a condition with configurable backoff."""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import Any

from kondition._core import Condition
from kondition._errors import ConditionInterruptedError
from kondition._result import Actual, Aggregation, Error, Result

RetryCallback = Callable[[int, Result, float], None]
"""Callback signature for retry hooks: (attempt, result, delay) -> None"""


# =============================================================================
# Retry Logic
# =============================================================================


class Retry(Condition[Callable[[], Any]]):
    """
    Evaluates a condition against freshly supplied data until it passes.

    The data is a zero-argument callable; it is called once per attempt and
    the condition is evaluated on what it returns. A supplier that raises
    counts as a failed attempt.

    Example:
        # Poll a job status up to 3 times, 0.5s apart
        done = Retry(equal_to("done"), max_attempts=3, backoff=0.5)
        check_that(lambda: job.status, done)

        # Exponential backoff with jitter
        done = Retry(equal_to("done"), max_attempts=5, backoff=0.1, exponential=True, jitter=0.05)

        # With observability hook
        def on_retry(attempt, result, delay):
            print(f"Retry {attempt}: {result}, waiting {delay}s")

        done = Retry(equal_to("done"), max_attempts=3, on_retry=on_retry)

    Args:
        condition: The condition each supplied value must satisfy
        max_attempts: Maximum number of attempts (default: 3)
        backoff: Base delay between attempts in seconds (default: 0)
        exponential: Use exponential backoff (default: False)
        jitter: Random jitter to add to delay (default: 0)
        name: Optional name used in messages
        on_retry: Optional callback(attempt, result, delay) called before each retry
    """

    composite = True

    def __init__(
        self,
        condition: Condition[Any],
        max_attempts: int = 3,
        backoff: float = 0.0,
        exponential: bool = False,
        jitter: float = 0.0,
        name: str | None = None,
        on_retry: RetryCallback | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.condition = condition
        self.name = name or str(condition)
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.exponential = exponential
        self.jitter = jitter
        self.on_retry = on_retry

    def _get_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number."""
        if self.backoff <= 0:
            return 0

        if self.exponential:
            delay = self.backoff * (2**attempt)
        else:
            delay = self.backoff

        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)

        return delay

    def _attempt(self, supplier: Callable[[], Any]) -> Result:
        try:
            value = supplier()
        except ConditionInterruptedError:
            raise
        except Exception as e:
            return Error(e, str(self.condition))
        return Actual(value, self.condition.evaluate(value))

    def _evaluate(self, data: Callable[[], Any]) -> Result:
        attempts: list[Result] = []

        for attempt in range(self.max_attempts):
            result = self._attempt(data)
            attempts.append(result)
            if result.passed:
                return self._build(attempts, f"Matched on attempt {attempt + 1}", True)

            # Don't sleep after last attempt
            if attempt < self.max_attempts - 1:
                delay = self._get_delay(attempt)

                if self.on_retry is not None:
                    self.on_retry(attempt + 1, result, delay)

                if delay > 0:
                    time.sleep(delay)

        return self._build(
            attempts, f"Not matched in {self.max_attempts} attempts", False
        )

    def _build(self, attempts: list[Result], message: str, passed: bool) -> Result:
        return Actual(message, Aggregation(", ", attempts, passed, str(self)))

    def __str__(self) -> str:
        return f"{self.name} within {self.max_attempts} attempts"
