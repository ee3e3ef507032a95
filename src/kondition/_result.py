"""
Diagnostic result model.

Every evaluation of a condition produces a tree of Result nodes. The set of
node types is closed: each one is a frozen dataclass whose ``passed`` flag is
fixed at construction, and each one dispatches to exactly one method of
ResultVisitor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


class Result(ABC):
    """
    Base class for all result nodes.

    Example:
        result = evaluate("A", equal_to("B"))
        result.passed   # False
        str(result)     # "expected: <B> but was: <A>"
    """

    passed: bool

    @property
    def failed(self) -> bool:
        return not self.passed

    def __bool__(self) -> bool:
        return self.passed

    @abstractmethod
    def accept(self, visitor: ResultVisitor) -> None:
        """Dispatch to the visitor method handling this node type."""
        ...

    def raise_if_failed(self, exception_class: type | None = None) -> None:
        """Raise an exception carrying the rendered mismatch if the result failed."""
        if self.passed:
            return
        if exception_class is None:
            from kondition._errors import AssertionFailure

            raise AssertionFailure(self)
        raise exception_class(str(self))

    def __str__(self) -> str:
        from kondition._visitors import MismatchVisitor

        return MismatchVisitor().visit(self).render()


@dataclass(frozen=True, eq=False)
class Expectation(Result):
    """Outcome of a leaf condition."""

    description: str
    passed: bool

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.expectation(self.description, self.passed)


@dataclass(frozen=True, eq=False)
class Actual(Result):
    """Records the actual value the wrapped result was computed for."""

    value: Any
    result: Result
    passed: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "passed", self.result.passed)

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.actual(self.value, self.result)


@dataclass(frozen=True, eq=False)
class Transformation(Result):
    """Outcome of a condition applied to a derived value."""

    name: str
    result: Result
    passed: bool

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.transformation(self.name, self.result, self.passed)


@dataclass(frozen=True, eq=False)
class Aggregation(Result):
    """
    Outcome of a condition composed of several sub-results.

    Used by AND/OR (join word " and " / " or ") as well as by the sequence
    matchers, which set ``description`` to their own expectation text.
    """

    join_word: str
    results: Sequence[Result]
    passed: bool
    description: str | None = None

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.aggregation(self.join_word, self.results, self.passed, self.description)


@dataclass(frozen=True)
class Cell:
    """One comparison of an expected condition (row) with an item (column)."""

    row: int
    column: int
    result: Result


@dataclass(frozen=True, eq=False)
class Table(Result):
    """Matrix of comparisons recorded by an any-order match."""

    rows: Sequence[Any]
    columns: Sequence[Any]
    cells: Sequence[Cell]
    message: str
    passed: bool

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.table(self.rows, self.columns, self.cells, self.message, self.passed)


@dataclass(frozen=True, eq=False)
class Group(Result):
    """Outcome of a keyed check, e.g. a single mapping entry."""

    label: Any
    result: Result
    passed: bool

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.group(self.label, self.result, self.passed)


@dataclass(frozen=True, eq=False)
class Inverted(Result):
    """Negation of the wrapped result; flips the failure indicator when rendered."""

    result: Result
    passed: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "passed", not self.result.passed)

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.inverted(self.result)


@dataclass(frozen=True, eq=False)
class Error(Result):
    """An exception raised while evaluating a predicate or transformation."""

    exception: BaseException
    description: str = ""
    passed: bool = field(init=False, default=False)

    def accept(self, visitor: ResultVisitor) -> None:
        visitor.error(self.exception, self.description)


class ResultVisitor(ABC):
    """
    Visitor over the closed set of result nodes.

    Subclasses implement one method per node type and are driven by
    ``result.accept(visitor)`` (or the ``visit`` shorthand).
    """

    def visit(self, result: Result) -> ResultVisitor:
        result.accept(self)
        return self

    @abstractmethod
    def actual(self, value: Any, result: Result) -> None: ...

    @abstractmethod
    def expectation(self, description: str, passed: bool) -> None: ...

    @abstractmethod
    def transformation(self, name: str, result: Result, passed: bool) -> None: ...

    @abstractmethod
    def aggregation(
        self,
        join_word: str,
        results: Sequence[Result],
        passed: bool,
        description: str | None,
    ) -> None: ...

    @abstractmethod
    def table(
        self,
        rows: Sequence[Any],
        columns: Sequence[Any],
        cells: Sequence[Cell],
        message: str,
        passed: bool,
    ) -> None: ...

    @abstractmethod
    def group(self, label: Any, result: Result, passed: bool) -> None: ...

    @abstractmethod
    def inverted(self, result: Result) -> None: ...

    @abstractmethod
    def error(self, exception: BaseException, description: str) -> None: ...
