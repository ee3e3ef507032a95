"""Tests for quantifiers and the sequence matchers."""

from __future__ import annotations

import queue as stdlib_queue
from collections import deque
from concurrent.futures import ThreadPoolExecutor

import pytest

from kondition import (
    AnyOrderMatch,
    LiveQueue,
    OrderedMatch,
    Quantifier,
    Table,
    anything,
    check_that,
    collection,
    contains,
    contains_all,
    contains_in_any_order,
    contains_in_any_order_only,
    contains_subsequence,
    empty_collection,
    equal_in_any_order,
    equal_to,
    equal_to_items,
    evaluate,
    every,
    exists,
    explain,
    greater_than,
    has_size,
    items,
    items_matching,
    one_of,
    queue,
    starts_in_any_order_with,
    starts_with,
    subset_of,
)

# =============================================================================
# Quantifiers
# =============================================================================


class TestQuantifier:
    def test_exists(self):
        assert check_that(["A", "B"], exists("B"))
        assert not check_that(["A", "C"], exists("B"))

    def test_every(self):
        assert check_that([1, 2], every(greater_than(0)))
        assert not check_that([1, 2, -1], every(greater_than(0)))

    def test_empty(self):
        assert not check_that([], exists(equal_to(1)))
        assert check_that([], every(equal_to(1)))

    def test_exists_stops_at_first_match(self):
        seen = []

        def source():
            for item in [1, 2, 3]:
                seen.append(item)
                yield item

        assert check_that(source(), exists(equal_to(2)))
        assert seen == [1, 2]

    def test_every_message(self):
        assert str(evaluate([1, 2, -1], every(greater_than(0)))) == (
            "expected: every Item > 0 but was: -1 doesn't match > 0"
            "\n\t+ expected: > 0 but was: <-1>"
        )

    def test_exists_message(self):
        assert str(evaluate(["A"], exists("B", element_name="Row"))) == (
            "expected: exists Row <B> but was: No Row <B> found"
            "\n\t+ expected: <B> but was: <A>"
        )

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            Quantifier("some", equal_to(1))

    def test_none(self):
        assert str(evaluate(None, exists(1))) == (
            "expected: exists Item <1> but was: <None>"
        )

    def test_live_queue(self):
        live = LiveQueue(["A", "B"])
        assert check_that(live, exists(equal_to("A")))
        assert len(live) == 1
        assert check_that(LiveQueue(["A", "A"]), every(equal_to("A")))
        assert not check_that(LiveQueue(), exists(anything()))


# =============================================================================
# Ordered Matching
# =============================================================================


class TestOrderedMatch:
    def test_equal_to_items(self):
        condition = equal_to_items(["A", "C", "D"])
        assert check_that(["A", "C", "D"], condition)
        assert not check_that(["A", "D", "C"], condition)
        assert not check_that(["A", "C", "D", "E"], condition)
        assert not check_that(["A", "C"], condition)

    def test_order_violation_message(self):
        result = evaluate(["A", "D", "C"], equal_to_items(["A", "C", "D"]))
        assert str(result) == (
            "expected: Items matching [<A>, <C>, <D>] but was: <C> not matched by any Item"
            "\n\t+ expected: <C> but was: <D>"
        )

    def test_extra_item_message(self):
        result = evaluate(["A", "C", "D", "E"], equal_to_items(["A", "C", "D"]))
        assert str(result) == (
            "expected: Items matching [<A>, <C>, <D>] but was: Extra Item E"
        )

    def test_starts_with(self):
        condition = starts_with(["A", "C"])
        assert check_that(["A", "C", "X"], condition)
        assert not check_that(["X", "A", "C"], condition)

    def test_contains(self):
        condition = contains(["A", "C"])
        assert check_that(["X", "A", "Y", "C"], condition)
        assert not check_that(["C", "A"], condition)

    def test_full_without_exact_ignores_trailing_items(self):
        condition = OrderedMatch(items("A", "C"), full=True, exact=False)
        assert check_that(["X", "A", "Y", "C", "Z"], condition)
        assert not check_that(["C", "A"], condition)

    def test_conditions_and_values_mix(self):
        condition = equal_to_items([greater_than(2), "b"])
        assert check_that([3, "b"], condition)

    def test_items_matching(self):
        condition = equal_to_items(items_matching(greater_than, [1, 2]))
        assert check_that([2, 3], condition)
        assert str(condition) == "Items matching [> 1, > 2]"

    def test_empty_conditions(self):
        assert check_that([], equal_to_items([]))
        assert not check_that(["A"], equal_to_items([]))
        assert check_that(["A"], starts_with([]))

    def test_none_data(self):
        assert str(evaluate(None, equal_to_items(["A"]))) == (
            "expected: Items matching [<A>] but was: <None>"
        )

    def test_iterator_data(self):
        assert check_that(iter("ACD"), equal_to_items(["A", "C", "D"]))

    def test_none_items_are_legal(self):
        assert check_that([None, "A"], equal_to_items([None, "A"]))

    def test_condition_is_reusable(self):
        condition = equal_to_items(["A"])
        assert check_that(["A"], condition)
        assert check_that(["A"], condition)


# =============================================================================
# Any-Order Matching
# =============================================================================


class TestAnyOrderMatch:
    def test_equal_in_any_order(self):
        condition = equal_in_any_order(["A", "C", "D"])
        assert check_that(["D", "A", "C"], condition)
        assert not check_that(["A", "C"], condition)
        assert not check_that(["A", "C", "D", "E"], condition)
        assert not check_that(["A", "X", "C", "D"], condition)

    def test_extra_item_named(self):
        result = evaluate(["A", "B"], equal_in_any_order(["A"]))
        assert str(result) == "expected: (<A>) in any order but: Extra Item B"

    def test_unmatched_item_named(self):
        result = evaluate(["A", "X", "C"], equal_in_any_order(["A", "C"]))
        assert str(result) == (
            "expected: (<A>, <C>) in any order but: Extra Item X"
            "\n\t+ expected: <C> but was: <X>"
        )

    def test_missing_item_names_condition(self):
        result = evaluate(["A", "C"], equal_in_any_order(["A", "C", "D"]))
        assert str(result) == (
            "expected: (<A>, <C>, <D>) in any order but: 1 check not satisfied: <D>"
        )

    def test_table_shows_unmatched_pairs(self):
        result = evaluate(["B", "A", "C"], contains_in_any_order(["B", "C", "F"]))
        assert str(result) == (
            "expected: (<B>, <C>, <F>) in any order but: 1 check not satisfied: <F>"
            "\n\t+ expected: <F> but was: <A>"
        )

    def test_table_records_comparisons(self):
        table = contains_in_any_order(["B", "C", "F"]).evaluate(["B", "A", "C"])
        assert isinstance(table, Table)
        assert list(table.columns) == ["B", "A", "C"]
        assert [(c.row, c.column, c.result.passed) for c in table.cells] == [
            (0, 0, True),
            (1, 1, False),
            (2, 1, False),
            (1, 2, True),
        ]

    def test_starts_in_any_order_with(self):
        condition = starts_in_any_order_with(["B", "A"])
        assert check_that(["A", "B", "X"], condition)
        assert not check_that(["A", "X", "B"], condition)

    def test_contains_in_any_order(self):
        condition = contains_in_any_order(["C", "A"])
        assert check_that(["X", "A", "Y", "C"], condition)
        assert not check_that(["X", "A"], condition)

    def test_stops_pulling_once_satisfied(self):
        items_left = deque(["A", "B", "C"])
        assert check_that(items_left, contains_in_any_order(["A"]))
        assert list(items_left) == ["B", "C"]

    def test_first_fit_is_not_optimal(self):
        # "A" claims the first condition although only it could satisfy the second
        condition = AnyOrderMatch([one_of("A", "B"), equal_to("A")])
        assert not check_that(["A", "B"], condition)
        assert check_that(["B", "A"], condition)

    def test_empty_conditions(self):
        assert check_that([], equal_in_any_order([]))
        assert not check_that(["A"], equal_in_any_order([]))
        assert check_that(["A"], contains_in_any_order([]))

    def test_multiple_missing(self):
        result = evaluate([], equal_in_any_order(["A", "B"]))
        assert "2 checks not satisfied: <A>, <B>" in str(result)


# =============================================================================
# Subsequence Matching
# =============================================================================


class TestSubsequenceMatch:
    def test_gaps_allowed(self):
        condition = contains_subsequence(["A", "C", "D"])
        assert check_that(["X", "A", "Y", "C", "Z", "D"], condition)

    def test_order_violated(self):
        condition = contains_subsequence(["A", "C", "D"])
        assert not check_that(["A", "D", "C"], condition)

    def test_repeated_candidates(self):
        assert check_that(["A", "A", "B"], contains_subsequence(["A", "B"]))
        assert check_that(["A", "B", "A", "C"], contains_subsequence(["A", "A", "C"]))

    def test_stops_at_first_full_match(self):
        items_left = deque(["A", "B", "C"])
        assert check_that(items_left, contains_subsequence(["A", "B"]))
        assert list(items_left) == ["C"]

    def test_empty(self):
        assert check_that([], contains_subsequence([]))
        assert not check_that([], contains_subsequence(["A"]))

    def test_failure_message(self):
        result = evaluate(["A", "D", "C"], contains_subsequence(["A", "C", "D"]))
        assert str(result).startswith(
            "expected: Items matching subsequence [<A>, <C>, <D>]"
            " but was: No subsequence of Items matched checks"
        )


# =============================================================================
# Source Adapters
# =============================================================================


class TestAdapters:
    def test_collection(self):
        assert check_that(["A"], collection(equal_to_items(["A"])))
        assert str(evaluate(None, collection(equal_to_items(["A"])))) == (
            "expected: not <None> but was: <None>"
        )

    def test_queue_consumes_pulled_items(self):
        pending = deque(["A", "B"])
        assert check_that(pending, queue(starts_with(["A"])))
        assert list(pending) == ["B"]

    def test_stdlib_queue(self):
        pending = stdlib_queue.Queue()
        for item in "AB":
            pending.put(item)
        assert check_that(pending, queue(equal_to_items(["A", "B"])))
        assert pending.empty()

    def test_description_of_adapter(self):
        assert str(queue(starts_with(["A"]))) == "Items matching [<A>]"

    def test_explain_matchers(self):
        assert explain(equal_to_items(["A", "B"])) == (
            "Exactly these Items in order:\n  • Check: <A>\n  • Check: <B>"
        )
        assert explain(collection(contains_in_any_order(["A"]))) == (
            "Require: not <None>\n  • Items containing in any order:\n    • Check: <A>"
        )


# =============================================================================
# Source Faults
# =============================================================================


def broken_cursor(*values):
    """Yield the values, then fail like a cursor whose connection dropped."""
    yield from values
    raise RuntimeError("cursor closed")


class TestSourceFaults:
    def test_ordered_match(self):
        result = evaluate(broken_cursor("A"), equal_to_items(["A", "B"]))
        assert result.failed
        assert str(result) == (
            "expected: Items matching [<A>, <B>] but was: Reading Items failed"
            "\n\t+ expected: Items matching [<A>, <B>] but has thrown"
            " RuntimeError('cursor closed')"
        )

    def test_any_order_match(self):
        result = evaluate(broken_cursor("B"), equal_in_any_order(["A", "B"]))
        assert result.failed
        assert str(result) == (
            "expected: Items matching in any order [<A>, <B>]"
            " but has thrown RuntimeError('cursor closed')"
        )

    def test_subsequence_through_collection(self):
        result = evaluate(broken_cursor("A"), collection(contains_subsequence(["A", "C"])))
        assert result.failed
        assert "but was: Reading Items failed" in str(result)
        assert "RuntimeError('cursor closed')" in str(result)

    def test_quantifier(self):
        result = evaluate(broken_cursor(1), exists(equal_to(2)))
        assert result.failed
        assert str(result).endswith(
            "\n\t+ expected: exists Item <2> but has thrown RuntimeError('cursor closed')"
        )

    def test_every_fails_instead_of_passing(self):
        assert not check_that(broken_cursor(), every(anything()))

    def test_decided_before_fault(self):
        assert check_that(broken_cursor("A"), starts_with(["A"]))
        assert check_that(broken_cursor(1, 2), exists(equal_to(2)))


# =============================================================================
# Collection Checks
# =============================================================================


class TestContainsInAnyOrderOnly:
    def test_every_item_must_match(self):
        condition = contains_in_any_order_only(["A", "B"])
        assert check_that(["B", "A"], condition)
        assert check_that(["B", "A", "B"], condition)
        assert not check_that(["B", "A", "X"], condition)
        assert not check_that(["A", "A"], condition)

    def test_unexpected_items_named(self):
        result = evaluate(["X", "B", "A", "Y"], contains_in_any_order_only(["A", "B"]))
        assert str(result).startswith(
            "expected: (<A>, <B>) in any order but: Unexpected Items: X, Y"
        )

    def test_missing_checks_reported_first(self):
        result = evaluate(["A", "X"], contains_in_any_order_only(["A", "B"]))
        assert "1 check not satisfied: <B>" in str(result)

    def test_drains_all_items(self):
        pending = deque(["A", "B", "A"])
        assert check_that(pending, queue(contains_in_any_order_only(["A", "B"])))
        assert not pending

    def test_explain(self):
        assert explain(contains_in_any_order_only(["A"])) == (
            "Only these Items, in any order:\n  • Check: <A>"
        )


class TestCollectionChecks:
    def test_has_size(self):
        assert check_that([1, 2], has_size(2))
        assert not check_that([1], has_size(2))
        assert str(evaluate([1], has_size(2))) == "expected: has size 2 but was: <[1]>"
        assert not check_that(None, has_size(0))

    def test_empty_collection(self):
        assert check_that([], empty_collection())
        assert check_that(None, empty_collection())
        assert not check_that([1], empty_collection())

    def test_subset_of(self):
        assert check_that(["a", "b"], subset_of(["a", "b", "c"]))
        assert check_that([], subset_of(["a"]))
        assert not check_that(["a", "d"], subset_of(["a", "b", "c"]))
        assert str(subset_of(["a", "b"])) == "subset of [a, b]"

    def test_contains_all(self):
        assert check_that({"a", "b", "c"}, contains_all(["a", "c"]))
        assert not check_that(["a"], contains_all(["a", "c"]))
        assert str(contains_all([1, 2])) == "has items [1, 2]"
        assert not check_that(None, contains_all([1]))


# =============================================================================
# Concurrency
# =============================================================================


class TestSharedConditions:
    def test_one_matcher_evaluated_from_many_threads(self):
        condition = contains_subsequence(["A", "C"]) & equal_in_any_order(["A", "B", "C"])
        inputs = [list(order) for order in ("ABC", "ACB", "BAC", "CAB", "CBA", "BCA")] * 20
        expected = [check_that(data, condition) for data in inputs]
        assert expected.count(True) == 60

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(lambda data: check_that(data, condition), inputs))
        assert outcomes == expected
