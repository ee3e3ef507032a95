"""
Kondition - Composable Conditions with Diagnostic Results

A Python library for building composite, typed conditions over arbitrary
data. Evaluating a condition produces a result tree which, on failure,
renders a precise explanation of which sub-condition failed, against which
actual value and at which position in a sequence.

Operators:
    &  = "and" (both operands are always evaluated)
    |  = "or"  (both operands are always evaluated)
    ~  = "not"

Example:
    from kondition import assert_that, equal_to, has, greater_than

    is_adult_bob = has("name").equal_to("Bob") & has("age").matching(greater_than(17))

    assert_that(user, is_adult_bob)

    # AssertionFailure:
    # expected: (name <Bob> and age > 17) but was: User(name='Bob', age=12)
    #     + expected: age > 17 but was: <12>
"""

from __future__ import annotations

from kondition._checks import (
    CheckBuilder,
    all_of,
    any_of,
    anything,
    blocking_queue,
    check,
    close_to,
    collection,
    compose,
    contains,
    contains_all,
    contains_in_any_order,
    contains_in_any_order_only,
    contains_subsequence,
    empty_collection,
    equal_in_any_order,
    equal_to,
    equal_to_items,
    every,
    exists,
    greater_than,
    has,
    has_size,
    instance_of,
    is_,
    is_none,
    is_not_none,
    items,
    items_matching,
    less_than,
    map_has,
    not_,
    nullable_check,
    nullable_has,
    one_of,
    queue,
    repeat_max,
    require,
    require_not_none,
    same_instance,
    starts_in_any_order_with,
    starts_with,
    subset_of,
    throwing,
    transform,
)
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
    assert_that,
    check_that,
    evaluate,
    evaluate_traced,
)
from kondition._errors import AssertionFailure, ConditionInterruptedError
from kondition._explain import explain
from kondition._result import (
    Actual,
    Aggregation,
    Cell,
    Error,
    Expectation,
    Group,
    Inverted,
    Result,
    ResultVisitor,
    Table,
    Transformation,
)
from kondition._retry import Retry
from kondition._sequences import (
    AnyOrderMatch,
    OrderedMatch,
    Quantifier,
    SubsequenceMatch,
)
from kondition._sources import (
    BlockingSource,
    FiniteSource,
    LiveQueue,
    QueueSource,
    Source,
    as_source,
)
from kondition._tracing import (
    LoggingHook,
    OpenTelemetryHook,
    PrintHook,
    TraceConfig,
    TraceHook,
    use_tracing,
)
from kondition._types import END
from kondition._visitors import (
    BooleanVisitor,
    ExpectationVisitor,
    MismatchVisitor,
    TreeVisitor,
    to_dict,
)

__version__ = "0.1.0"
__all__ = [
    # Core
    "Condition",
    "Leaf",
    "Transform",
    "Guard",
    "And",
    "Or",
    "Not",
    "MapEntry",
    "Throwing",
    "evaluate",
    "check_that",
    "assert_that",
    # Sequences
    "Quantifier",
    "OrderedMatch",
    "AnyOrderMatch",
    "SubsequenceMatch",
    # Sources
    "END",
    "Source",
    "FiniteSource",
    "QueueSource",
    "BlockingSource",
    "LiveQueue",
    "as_source",
    # Results
    "Result",
    "Actual",
    "Expectation",
    "Transformation",
    "Aggregation",
    "Cell",
    "Table",
    "Group",
    "Inverted",
    "Error",
    # Visitors
    "ResultVisitor",
    "ExpectationVisitor",
    "MismatchVisitor",
    "BooleanVisitor",
    "TreeVisitor",
    "to_dict",
    # Errors
    "AssertionFailure",
    "ConditionInterruptedError",
    # Checks
    "CheckBuilder",
    "check",
    "nullable_check",
    "equal_to",
    "is_",
    "same_instance",
    "is_none",
    "is_not_none",
    "anything",
    "instance_of",
    "one_of",
    "less_than",
    "greater_than",
    "close_to",
    "not_",
    "all_of",
    "any_of",
    "require",
    "require_not_none",
    "transform",
    "compose",
    "has",
    "nullable_has",
    "map_has",
    "throwing",
    "items",
    "items_matching",
    "exists",
    "every",
    "equal_to_items",
    "starts_with",
    "contains",
    "equal_in_any_order",
    "starts_in_any_order_with",
    "contains_in_any_order",
    "contains_in_any_order_only",
    "contains_subsequence",
    "has_size",
    "empty_collection",
    "subset_of",
    "contains_all",
    "collection",
    "queue",
    "blocking_queue",
    # Retry
    "Retry",
    "repeat_max",
    # Tracing
    "TraceHook",
    "TraceConfig",
    "use_tracing",
    "evaluate_traced",
    "PrintHook",
    "LoggingHook",
    "OpenTelemetryHook",
    # Explanation
    "explain",
]
