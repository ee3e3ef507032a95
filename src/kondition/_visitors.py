"""Result visitors: expectation text, mismatch rendering, boolean and tree projections."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from kondition._result import Cell, Result, ResultVisitor

_NO_ACTUAL = object()


class ExpectationVisitor(ResultVisitor):
    """Renders the complete expectation a result was evaluated against."""

    def __init__(self, parts: list[str] | None = None):
        self._parts = parts if parts is not None else []

    def actual(self, value: Any, result: Result) -> None:
        result.accept(self)

    def expectation(self, description: str, passed: bool) -> None:
        self._parts.append(description)

    def transformation(self, name: str, result: Result, passed: bool) -> None:
        if name:
            self._parts.append(f"{name} ")
        result.accept(self)

    def aggregation(
        self,
        join_word: str,
        results: Sequence[Result],
        passed: bool,
        description: str | None,
    ) -> None:
        if description is not None:
            self._parts.append(description)
            return
        self._parts.append("(")
        for i, item in enumerate(results):
            if i > 0:
                self._parts.append(join_word)
            item.accept(self)
        self._parts.append(")")

    def table(
        self,
        rows: Sequence[Any],
        columns: Sequence[Any],
        cells: Sequence[Cell],
        message: str,
        passed: bool,
    ) -> None:
        self._parts.append(f"({', '.join(map(str, rows))}) in any order")

    def group(self, label: Any, result: Result, passed: bool) -> None:
        self._parts.append(f"{label}: ")
        result.accept(self)

    def inverted(self, result: Result) -> None:
        self._parts.append("not ")
        result.accept(self)

    def error(self, exception: BaseException, description: str) -> None:
        self._parts.append(description)

    def render(self) -> str:
        return "".join(self._parts)


class MismatchVisitor(ResultVisitor):
    """
    Renders the minimal explanation of why a result failed.

    The visitor carries a failure indicator: the ``passed`` value which, in
    the current context, marks a sub-result as a cause of the failure. It
    starts as False and is flipped by every Inverted node, so that a failed
    ``not (A and B)`` is explained by the parts of ``A and B`` that passed.

    Only sub-results whose outcome matches the failure indicator are
    elaborated, each on its own indented line.

    Example:
        MismatchVisitor().visit(evaluate("A", equal_to("C") & equal_to("B"))).render()

        # expected: (<C> and <B>) but was: A
        #     + expected: <C> but was: <A>
        #     + expected: <B> but was: <A>
    """

    def __init__(
        self,
        failure_indicator: bool = False,
        actual_value: Any = _NO_ACTUAL,
        parts: list[str] | None = None,
        prefix: str = "\n\t",
    ):
        self.failure_indicator = failure_indicator
        self.actual_value = actual_value
        self._parts = parts if parts is not None else []
        self._prefix = prefix

    def visit(self, result: Result) -> MismatchVisitor:
        if result.passed == self.failure_indicator:
            self._parts.append("expected: ")
            ExpectationVisitor(self._parts).visit(result)
            result.accept(self)
        return self

    def _with(
        self, failure_indicator: bool | None = None, actual_value: Any = _NO_ACTUAL
    ) -> MismatchVisitor:
        return MismatchVisitor(
            self.failure_indicator if failure_indicator is None else failure_indicator,
            self.actual_value if actual_value is _NO_ACTUAL else actual_value,
            self._parts,
            self._prefix,
        )

    def _nested(self, result: Result, actual_value: Any = _NO_ACTUAL) -> None:
        self._parts.append(f"{self._prefix}+ ")
        MismatchVisitor(
            self.failure_indicator,
            self.actual_value if actual_value is _NO_ACTUAL else actual_value,
            self._parts,
            self._prefix + "\t",
        ).visit(result)

    def _actual_text(self) -> str:
        if self.actual_value is _NO_ACTUAL:
            return "?"
        return str(self.actual_value)

    def actual(self, value: Any, result: Result) -> None:
        result.accept(self._with(actual_value=value))

    def expectation(self, description: str, passed: bool) -> None:
        self._parts.append(f" but was: <{self._actual_text()}>")

    def transformation(self, name: str, result: Result, passed: bool) -> None:
        result.accept(self)

    def aggregation(
        self,
        join_word: str,
        results: Sequence[Result],
        passed: bool,
        description: str | None,
    ) -> None:
        self._parts.append(f" but was: {self._actual_text()}")
        for item in results:
            if item.passed == self.failure_indicator:
                self._nested(item)

    def table(
        self,
        rows: Sequence[Any],
        columns: Sequence[Any],
        cells: Sequence[Cell],
        message: str,
        passed: bool,
    ) -> None:
        self._parts.append(f" but: {message}")
        satisfied_rows = {cell.row for cell in cells if cell.result.passed}
        satisfied_columns = {cell.column for cell in cells if cell.result.passed}
        for cell in cells:
            if cell.row in satisfied_rows or cell.column in satisfied_columns:
                continue
            self._nested(cell.result, columns[cell.column])

    def group(self, label: Any, result: Result, passed: bool) -> None:
        result.accept(self)

    def inverted(self, result: Result) -> None:
        result.accept(self._with(failure_indicator=not self.failure_indicator))

    def error(self, exception: BaseException, description: str) -> None:
        self._parts.append(f" but has thrown {exception!r}")

    def render(self) -> str:
        return "".join(self._parts)

    def __str__(self) -> str:
        return self.render()


class BooleanVisitor(ResultVisitor):
    """Reduces a result tree to a plain boolean without building any message."""

    def __init__(self) -> None:
        self.value = False

    def actual(self, value: Any, result: Result) -> None:
        result.accept(self)

    def expectation(self, description: str, passed: bool) -> None:
        self.value = passed

    def transformation(self, name: str, result: Result, passed: bool) -> None:
        self.value = passed

    def aggregation(
        self,
        join_word: str,
        results: Sequence[Result],
        passed: bool,
        description: str | None,
    ) -> None:
        self.value = passed

    def table(
        self,
        rows: Sequence[Any],
        columns: Sequence[Any],
        cells: Sequence[Cell],
        message: str,
        passed: bool,
    ) -> None:
        self.value = passed

    def group(self, label: Any, result: Result, passed: bool) -> None:
        self.value = passed

    def inverted(self, result: Result) -> None:
        result.accept(self)
        self.value = not self.value

    def error(self, exception: BaseException, description: str) -> None:
        self.value = False


class TreeVisitor(ResultVisitor):
    """
    Projects a result into nested plain dictionaries, e.g. for JSON reports.

    Example:
        TreeVisitor().visit(result).tree
        # {"type": "actual", "value": "A", "passed": False, "result": {...}}
    """

    def __init__(self) -> None:
        self.tree: dict[str, Any] = {}

    @staticmethod
    def _project(result: Result) -> dict[str, Any]:
        visitor = TreeVisitor()
        result.accept(visitor)
        return visitor.tree

    def actual(self, value: Any, result: Result) -> None:
        self.tree = {
            "type": "actual",
            "value": value,
            "passed": result.passed,
            "result": self._project(result),
        }

    def expectation(self, description: str, passed: bool) -> None:
        self.tree = {"type": "expectation", "description": description, "passed": passed}

    def transformation(self, name: str, result: Result, passed: bool) -> None:
        self.tree = {
            "type": "transformation",
            "name": name,
            "passed": passed,
            "result": self._project(result),
        }

    def aggregation(
        self,
        join_word: str,
        results: Sequence[Result],
        passed: bool,
        description: str | None,
    ) -> None:
        self.tree = {
            "type": "aggregation",
            "join": join_word.strip(),
            "description": description,
            "passed": passed,
            "results": [self._project(item) for item in results],
        }

    def table(
        self,
        rows: Sequence[Any],
        columns: Sequence[Any],
        cells: Sequence[Cell],
        message: str,
        passed: bool,
    ) -> None:
        self.tree = {
            "type": "table",
            "rows": [str(row) for row in rows],
            "columns": list(columns),
            "message": message,
            "passed": passed,
            "cells": [
                {
                    "row": cell.row,
                    "column": cell.column,
                    "result": self._project(cell.result),
                }
                for cell in cells
            ],
        }

    def group(self, label: Any, result: Result, passed: bool) -> None:
        self.tree = {
            "type": "group",
            "label": label,
            "passed": passed,
            "result": self._project(result),
        }

    def inverted(self, result: Result) -> None:
        self.tree = {
            "type": "inverted",
            "passed": not result.passed,
            "result": self._project(result),
        }

    def error(self, exception: BaseException, description: str) -> None:
        self.tree = {
            "type": "error",
            "description": description,
            "error": repr(exception),
            "passed": False,
        }


def to_dict(result: Result) -> dict[str, Any]:
    """Project a result into nested dictionaries."""
    visitor = TreeVisitor()
    result.accept(visitor)
    return visitor.tree
