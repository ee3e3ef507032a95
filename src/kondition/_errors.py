"""Exceptions raised out of condition evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kondition._result import Result


class ConditionInterruptedError(RuntimeError):
    """
    Raised when a blocking source is interrupted while waiting for data.

    Unlike predicate faults, which are captured into the result tree, this
    error escapes evaluation so the caller can tell a cancelled wait apart
    from a legitimate timeout or end of data.
    """

    def __init__(self, what: object, cause: BaseException | None = None):
        super().__init__(f"Interrupted while waiting for data: {what}")
        self.what = what
        self.__cause__ = cause


class AssertionFailure(AssertionError):
    """
    Raised by assert_that() when the data does not satisfy the condition.

    Attributes:
        result: The full diagnostic result of the failed evaluation
    """

    def __init__(self, result: Result):
        super().__init__(str(result))
        self.result = result
