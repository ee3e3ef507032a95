"""Quantifiers and the ordered, any-order and subsequence matchers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from kondition._core import Condition
from kondition._errors import ConditionInterruptedError
from kondition._result import Actual, Aggregation, Cell, Error, Expectation, Result, Table
from kondition._sources import as_source
from kondition._types import END


def _describe(conditions: Sequence[Condition]) -> str:
    return "[" + ", ".join(str(c) for c in conditions) + "]"


class Quantifier(Condition[Any]):
    """
    Checks that some (``exists``) or all (``every``) items match a condition.

    Items are pulled only until the outcome is decided.

    Example:
        check_that([1, 5, 9], Quantifier("exists", greater_than(8)))  # True
    """

    composite = True

    def __init__(self, kind: str, condition: Condition[Any], element_name: str = "Item"):
        if kind not in ("exists", "every"):
            raise ValueError(f"Unknown quantifier: {kind!r}")
        self.kind = kind
        self.condition = condition
        self.element_name = element_name
        self._description = f"{kind} {element_name} {condition}"

    def _evaluate(self, data: Any) -> Result:
        source = as_source(data)
        if source is None:
            return Expectation(str(self), False)
        # The outcome that ends the scan early
        decisive = self.kind == "exists"
        results: list[Result] = []
        try:
            while (item := source.pull()) is not END:
                result = self.condition.evaluate(item)
                results.append(Actual(item, result))
                if result.passed == decisive:
                    if decisive:
                        message = f"{self.element_name} {self.condition} found"
                    else:
                        message = f"{item} doesn't match {self.condition}"
                    return self._build(results, message, decisive)
        except ConditionInterruptedError:
            raise
        except Exception as e:
            results.append(Error(e, str(self)))
            return self._build(results, f"Reading {self.element_name}s failed", False)
        if decisive:
            message = f"No {self.element_name} {self.condition} found"
        else:
            message = f"All {self.element_name}s matched {self.condition}"
        return self._build(results, message, not decisive)

    def _build(self, results: list[Result], message: str, passed: bool) -> Result:
        return Actual(message, Aggregation(", ", results, passed, str(self)))

    def __str__(self) -> str:
        return self._description


class OrderedMatch(Condition[Any]):
    """
    Matches a run of items against conditions in order.

    Args:
        conditions: One condition per expected item
        full: No items may follow the last match (only with ``exact``)
        exact: Each condition must match the very next item, no skipping
        element_name: Name of an item in messages (default: "Item")

    The flag combinations give:
        full + exact -> equal_to_items
        exact        -> starts_with
        neither      -> contains
        full         -> succeeds once all conditions matched, trailing items ignored
    """

    composite = True

    def __init__(
        self,
        conditions: Iterable[Condition[Any]],
        full: bool = True,
        exact: bool = True,
        element_name: str = "Item",
    ):
        self.conditions = tuple(conditions)
        self.full = full
        self.exact = exact
        self.element_name = element_name
        self._description = f"{element_name}s matching {_describe(self.conditions)}"

    def _evaluate(self, data: Any) -> Result:
        source = as_source(data)
        if source is None:
            return Expectation(str(self), False)
        results: list[Result] = []
        try:
            for condition in self.conditions:
                if not self._match(condition, source, results):
                    return self._build(
                        results, f"{condition} not matched by any {self.element_name}", False
                    )
            if self.full and self.exact:
                extra = source.pull()
                if extra is not END:
                    return self._build(results, f"Extra {self.element_name} {extra}", False)
        except ConditionInterruptedError:
            raise
        except Exception as e:
            results.append(Error(e, str(self)))
            return self._build(results, f"Reading {self.element_name}s failed", False)
        return self._build(results, f"{self.element_name}s matched checks", True)

    def _match(self, condition: Condition[Any], source: Any, results: list[Result]) -> bool:
        while (item := source.pull()) is not END:
            result = condition.evaluate(item)
            results.append(Actual(item, result))
            if result.passed:
                return True
            if self.exact:
                return False
        return False

    def _build(self, results: list[Result], message: str, passed: bool) -> Result:
        return Actual(message, Aggregation(", ", results, passed, str(self)))

    def __str__(self) -> str:
        return self._description


class AnyOrderMatch(Condition[Any]):
    """
    Matches a run of items against conditions in any order.

    Assignment is greedy first-fit: each item claims the first unclaimed
    condition (in declaration order) it satisfies. This is not an optimal
    bipartite matching, so overlapping conditions can report a failure that
    another assignment would have avoided.

    Every comparison made is recorded in a Table result, so the rendered
    mismatch shows which unmatched condition was tried against which
    unclaimed item.

    With ``only`` set, all items are drained and each one must satisfy some
    condition. An item that claims nothing is tried against the already
    claimed conditions before it is reported as unexpected.
    """

    composite = True

    def __init__(
        self,
        conditions: Iterable[Condition[Any]],
        full: bool = True,
        exact: bool = True,
        element_name: str = "Item",
        only: bool = False,
    ):
        self.conditions = tuple(conditions)
        self.full = full
        self.exact = exact
        self.only = only
        self.element_name = element_name
        self._description = (
            f"{element_name}s matching in any order {_describe(self.conditions)}"
        )

    def _evaluate(self, data: Any) -> Result:
        source = as_source(data)
        if source is None:
            return Expectation(str(self), False)
        working = list(enumerate(self.conditions))
        columns: list[Any] = []
        cells: list[Cell] = []
        unexpected: list[Any] = []
        # Completing early is only possible when nothing after the last claim matters
        settles_early = not self.only and not (self.full and self.exact)

        def build(message: str, passed: bool) -> Result:
            return Table(self.conditions, tuple(columns), tuple(cells), message, passed)

        if not working and settles_early:
            return build("All checks satisfied", True)

        try:
            while (item := source.pull()) is not END:
                column = len(columns)
                columns.append(item)
                if not working and not self.only:
                    return build(f"Extra {self.element_name} {item}", False)
                if self._claim(working, item, column, cells):
                    if not working and settles_early:
                        return build("All checks satisfied", True)
                elif self.only:
                    if not self._rematch(working, item, column, cells):
                        unexpected.append(item)
                elif self.exact:
                    return build(f"Extra {self.element_name} {item}", False)
        except ConditionInterruptedError:
            raise
        except Exception as e:
            return Error(e, str(self))

        if working:
            unmatched = ", ".join(str(condition) for _, condition in working)
            count = len(working)
            return build(
                f"{count} {'check' if count == 1 else 'checks'} not satisfied: {unmatched}",
                False,
            )
        if unexpected:
            listed = ", ".join(str(item) for item in unexpected)
            return build(f"Unexpected {self.element_name}s: {listed}", False)
        return build("All checks satisfied", True)

    @staticmethod
    def _claim(
        working: list[tuple[int, Condition[Any]]], item: Any, column: int, cells: list[Cell]
    ) -> bool:
        for position, (row, condition) in enumerate(working):
            result = condition.evaluate(item)
            cells.append(Cell(row, column, result))
            if result.passed:
                del working[position]
                return True
        return False

    def _rematch(
        self, working: list[tuple[int, Condition[Any]]], item: Any, column: int, cells: list[Cell]
    ) -> bool:
        open_rows = {row for row, _ in working}
        for row, condition in enumerate(self.conditions):
            if row in open_rows:
                continue
            result = condition.evaluate(item)
            cells.append(Cell(row, column, result))
            if result.passed:
                return True
        return False

    def __str__(self) -> str:
        return self._description


class SubsequenceMatch(Condition[Any]):
    """
    Checks that the conditions match items in order, with any gaps between them.

    Works online in a single pass. Every item may start a new candidate
    alignment; candidates are advanced oldest first, so a further-progressed
    candidate always gets an item before the one it spawned. An item that a
    candidate does not match is skipped as a gap.

    Example:
        check_that("XAYCZD", SubsequenceMatch(items("A", "C", "D")))  # True
    """

    composite = True

    def __init__(self, conditions: Iterable[Condition[Any]], element_name: str = "Item"):
        self.conditions = tuple(conditions)
        self.element_name = element_name
        self._description = (
            f"{element_name}s matching subsequence {_describe(self.conditions)}"
        )

    def _evaluate(self, data: Any) -> Result:
        source = as_source(data)
        if source is None:
            return Expectation(str(self), False)
        results: list[Result] = []
        if not self.conditions:
            return self._build(results, f"{self.element_name}s matched checks", True)
        target = len(self.conditions)
        # Length of the matched prefix of each candidate alignment, oldest first
        counters: list[int] = []
        try:
            while (item := source.pull()) is not END:
                if 0 not in counters:
                    counters.append(0)
                advanced: list[int] = []
                for matched in counters:
                    result = self.conditions[matched].evaluate(item)
                    results.append(Actual(item, result))
                    if result.passed:
                        if matched + 1 == target:
                            return self._build(
                                results, f"{self.element_name}s matched checks", True
                            )
                        matched += 1
                    # A miss is a gap; candidates that reach the same progress merge
                    if matched not in advanced:
                        advanced.append(matched)
                counters = advanced
        except ConditionInterruptedError:
            raise
        except Exception as e:
            results.append(Error(e, str(self)))
            return self._build(results, f"Reading {self.element_name}s failed", False)
        return self._build(
            results, f"No subsequence of {self.element_name}s matched checks", False
        )

    def _build(self, results: list[Result], message: str, passed: bool) -> Result:
        return Actual(message, Aggregation(", ", results, passed, str(self)))

    def __str__(self) -> str:
        return self._description
