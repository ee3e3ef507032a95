"""
Factory functions building condition trees.

These are thin constructors over the node types in ``_core`` and
``_sequences``; all of the evaluation logic lives there.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from functools import reduce
from typing import Any

from kondition._core import (
    And,
    Condition,
    Guard,
    Leaf,
    MapEntry,
    Not,
    Or,
    Throwing,
    Transform,
)
from kondition._retry import Retry
from kondition._sequences import (
    AnyOrderMatch,
    OrderedMatch,
    Quantifier,
    SubsequenceMatch,
)
from kondition._sources import BlockingSource, FiniteSource, QueueSource
from kondition._types import T


def _as_condition(value: Any) -> Condition[Any]:
    return value if isinstance(value, Condition) else equal_to(value)


# =============================================================================
# Basic Checks
# =============================================================================


def nullable_check(predicate: Callable[[T], Any], description: str) -> Condition[T]:
    """A leaf condition that is also evaluated on None."""
    return Leaf(description, predicate)


def check(predicate: Callable[[T], Any], description: str) -> Condition[T]:
    """
    A leaf condition that fails on None without calling the predicate.

    Example:
        even = check(lambda n: n % 2 == 0, "even")
        str(evaluate(None, even))  # "expected: not <None> but was: <None>"
    """
    return require_not_none(Leaf(description, predicate))


def equal_to(expected: Any) -> Condition[Any]:
    return Leaf(f"<{expected}>", lambda data: data == expected)


def is_(expected: Any) -> Condition[Any]:
    """Returns conditions unchanged and wraps plain values in equal_to()."""
    return _as_condition(expected)


def same_instance(expected: Any) -> Condition[Any]:
    return Leaf(f"same instance as <{expected}>", lambda data: data is expected)


def is_none() -> Condition[Any]:
    return Leaf("<None>", lambda data: data is None)


def is_not_none() -> Condition[Any]:
    return Leaf("not <None>", lambda data: data is not None)


def anything() -> Condition[Any]:
    return Leaf("anything", lambda data: True)


def instance_of(cls: type) -> Condition[Any]:
    return Leaf(f"instance of {cls.__name__}", lambda data: isinstance(data, cls))


def one_of(*values: Any) -> Condition[Any]:
    description = "one of [" + ", ".join(f"<{v}>" for v in values) + "]"
    return Leaf(description, lambda data: data in values)


# =============================================================================
# Numeric Checks
# =============================================================================


def less_than(limit: Any) -> Condition[Any]:
    return check(lambda data: data < limit, f"< {limit}")


def greater_than(limit: Any) -> Condition[Any]:
    return check(lambda data: data > limit, f"> {limit}")


def close_to(expected: float, tolerance: float) -> Condition[Any]:
    return check(
        lambda data: math.isclose(data, expected, rel_tol=0.0, abs_tol=tolerance),
        f"{expected} ±{tolerance}",
    )


# =============================================================================
# Composition
# =============================================================================


def not_(condition: Condition[T]) -> Condition[T]:
    return Not(condition)


def all_of(*conditions: Condition[T]) -> Condition[T]:
    """All conditions must pass. Every one of them is evaluated."""
    if not conditions:
        raise ValueError("all_of() requires at least one condition")
    return reduce(And, conditions)


def any_of(*conditions: Condition[T]) -> Condition[T]:
    """At least one condition must pass. Every one of them is evaluated."""
    if not conditions:
        raise ValueError("any_of() requires at least one condition")
    return reduce(Or, conditions)


def require(requirement: Condition[T], condition: Condition[T]) -> Condition[T]:
    return Guard(requirement, condition)


def require_not_none(condition: Condition[T]) -> Condition[T]:
    return Guard(is_not_none(), condition)


def transform(name: str, fn: Callable[[Any], Any], condition: Condition[Any]) -> Condition[Any]:
    return Transform(name, fn, condition)


def compose(fn: Callable[[Any], Any], condition: Condition[Any]) -> Condition[Any]:
    """Evaluate the condition on ``fn(data)`` without naming the step in messages."""
    return Transform("", fn, condition)


class CheckBuilder:
    """
    Builder for conditions on a named attribute or derived value.

    Example:
        has("name").equal_to("Alice")
        has("size", len).matching(greater_than(2))
    """

    def __init__(self, name: str, fn: Callable[[Any], Any], nullable: bool = False):
        self.name = name
        self.fn = fn
        self.nullable = nullable

    def matching(self, condition: Condition[Any]) -> Condition[Any]:
        node = Transform(self.name, self.fn, condition)
        return node if self.nullable else require_not_none(node)

    def equal_to(self, expected: Any) -> Condition[Any]:
        return self.matching(equal_to(expected))

    def having(self, predicate: Callable[[Any], Any], description: str) -> Condition[Any]:
        return self.matching(nullable_check(predicate, description))


def _attribute_getter(name: str) -> Callable[[Any], Any]:
    def get(data: Any) -> Any:
        return getattr(data, name)

    get.__name__ = name
    return get


def has(name: str, fn: Callable[[Any], Any] | None = None) -> CheckBuilder:
    """Null-safe builder; reads attribute ``name`` unless ``fn`` is given."""
    return CheckBuilder(name, fn or _attribute_getter(name))


def nullable_has(name: str, fn: Callable[[Any], Any] | None = None) -> CheckBuilder:
    return CheckBuilder(name, fn or _attribute_getter(name), nullable=True)


def map_has(key: Any, condition: Any) -> Condition[Any]:
    """Check the value stored under ``key`` of a mapping."""
    return require_not_none(MapEntry(key, _as_condition(condition)))


def throwing(expected: Condition[BaseException] | type = Exception) -> Condition[Any]:
    """
    Check that calling the data raises an exception.

    Example:
        check_that(lambda: int("x"), throwing(ValueError))  # True
    """
    if isinstance(expected, type):
        expected = instance_of(expected)
    return Throwing(expected)


# =============================================================================
# Sequences
# =============================================================================


def items(*values: Any) -> list[Condition[Any]]:
    """Conditions for a matcher: values become equal_to(), conditions are kept."""
    return [_as_condition(v) for v in values]


def items_matching(factory: Callable[[Any], Condition[Any]], values: Iterable[Any]) -> list[Condition[Any]]:
    """Build one condition per value, e.g. ``items_matching(greater_than, [1, 2])``."""
    return [factory(v) for v in values]


def exists(condition: Any, element_name: str = "Item") -> Condition[Any]:
    return Quantifier("exists", _as_condition(condition), element_name)


def every(condition: Any, element_name: str = "Item") -> Condition[Any]:
    return Quantifier("every", _as_condition(condition), element_name)


def equal_to_items(conditions: Iterable[Any], element_name: str = "Item") -> Condition[Any]:
    """Items match the conditions in order, nothing skipped, nothing extra."""
    return OrderedMatch(items(*conditions), full=True, exact=True, element_name=element_name)


def starts_with(conditions: Iterable[Any], element_name: str = "Item") -> Condition[Any]:
    return OrderedMatch(items(*conditions), full=False, exact=True, element_name=element_name)


def contains(conditions: Iterable[Any], element_name: str = "Item") -> Condition[Any]:
    """Items match the conditions in order, other items may come in between."""
    return OrderedMatch(items(*conditions), full=False, exact=False, element_name=element_name)


def equal_in_any_order(conditions: Iterable[Any], element_name: str = "Item") -> Condition[Any]:
    return AnyOrderMatch(items(*conditions), full=True, exact=True, element_name=element_name)


def starts_in_any_order_with(
    conditions: Iterable[Any], element_name: str = "Item"
) -> Condition[Any]:
    return AnyOrderMatch(items(*conditions), full=False, exact=True, element_name=element_name)


def contains_in_any_order(conditions: Iterable[Any], element_name: str = "Item") -> Condition[Any]:
    return AnyOrderMatch(items(*conditions), full=False, exact=False, element_name=element_name)


def contains_in_any_order_only(
    conditions: Iterable[Any], element_name: str = "Item"
) -> Condition[Any]:
    """Every condition is claimed by some item and every item matches some condition."""
    return AnyOrderMatch(
        items(*conditions), full=False, exact=False, element_name=element_name, only=True
    )


def contains_subsequence(conditions: Iterable[Any], element_name: str = "Item") -> Condition[Any]:
    return SubsequenceMatch(items(*conditions), element_name=element_name)


# =============================================================================
# Collection Checks
# =============================================================================


def has_size(size: int) -> Condition[Any]:
    return check(lambda data: len(data) == size, f"has size {size}")


def empty_collection() -> Condition[Any]:
    """Passes on None as well as on an empty collection, unlike ``has_size(0)``."""
    return nullable_check(lambda data: data is None or len(data) == 0, "is empty collection")


def subset_of(superset: Iterable[Any]) -> Condition[Any]:
    """
    Every item of the collection is one of ``superset``.

    Example:
        check_that(["a", "b"], subset_of(["a", "b", "c"]))  # True
    """
    allowed = list(superset)
    description = "subset of [" + ", ".join(str(v) for v in allowed) + "]"
    return check(lambda data: all(item in allowed for item in data), description)


def contains_all(expected: Iterable[Any]) -> Condition[Any]:
    required = list(expected)
    description = "has items [" + ", ".join(str(v) for v in required) + "]"
    return check(lambda data: all(item in data for item in required), description)


# =============================================================================
# Source Adapters
# =============================================================================


def collection(condition: Condition[Any]) -> Condition[Any]:
    """Evaluate a matcher on an iterable, failing cleanly on None."""
    return require_not_none(Transform("", FiniteSource, condition))


def queue(condition: Condition[Any]) -> Condition[Any]:
    """Evaluate a matcher on a queue, consuming the items it pulls."""
    return require_not_none(Transform("", QueueSource, condition))


def blocking_queue(condition: Condition[Any], timeout: float = 1.0) -> Condition[Any]:
    """
    Evaluate a matcher on a LiveQueue or queue.Queue fed by another thread.

    Every pull waits up to ``timeout`` seconds for the next item.
    """
    return require_not_none(
        Transform("", lambda items: BlockingSource(items, timeout), condition)
    )


def repeat_max(
    condition: Condition[Any], max_attempts: int, delay: float = 0.0
) -> Condition[Any]:
    """
    Evaluate ``condition`` against ``data()`` up to ``max_attempts`` times.

    Example:
        assert_that(lambda: job.status, repeat_max(equal_to("done"), 5, delay=0.2))
    """
    return Retry(condition, max_attempts=max_attempts, backoff=delay)
