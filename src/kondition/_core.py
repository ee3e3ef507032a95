"""Condition base class, boolean combinators and evaluation entry points."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic

from kondition._errors import ConditionInterruptedError
from kondition._result import (
    Actual,
    Aggregation,
    Error,
    Expectation,
    Group,
    Inverted,
    Result,
    Transformation,
)
from kondition._tracing import TraceConfig, TraceHook, use_tracing
from kondition._types import T, V, _trace_config, _trace_depth, _trace_hook
from kondition._visitors import BooleanVisitor

# =============================================================================
# Core Condition Base
# =============================================================================


class Condition(ABC, Generic[T]):
    """
    Base class for all conditions.

    A condition is evaluated against data and returns a Result tree that
    records every sub-outcome. Conditions are immutable, so one instance can
    be shared by any number of compound conditions and threads.

    Conditions can be composed using operators:
        &  = and (both operands are always evaluated)
        |  = or  (both operands are always evaluated)
        ~  = not

    or with the chaining methods ``and_()`` / ``or_()``. Chained calls keep
    the usual precedence, so ``a.or_(b).and_(c)`` means ``a or (b and c)``.

    Tracing:
        Use `with use_tracing(hook):` to trace all evaluations within scope.
        Or use `evaluate_traced(data, condition, hook)` for explicit tracing.
    """

    # Conditions evaluating other conditions; skipped by include_leaf_only
    composite: ClassVar[bool] = False

    @abstractmethod
    def _evaluate(self, data: T) -> Result:
        """Internal evaluation - subclasses implement this."""
        ...

    def evaluate(self, data: T) -> Result:
        """
        Evaluate the condition and return its diagnostic result.

        If tracing is enabled via use_tracing(), this will automatically
        trace the evaluation.
        """
        hook = _trace_hook.get()
        if hook is not None:
            config = _trace_config.get() or TraceConfig()
            return _traced_evaluate(self, data, hook, config)

        return self._evaluate(data)

    def __and__(self, other: Condition[T]) -> Condition[T]:
        """a & b = both a and b must pass."""
        return And(self, other)

    def __or__(self, other: Condition[T]) -> Condition[T]:
        """a | b = a or b must pass."""
        return Or(self, other)

    def __invert__(self) -> Condition[T]:
        """~a = a must fail."""
        return Not(self)

    def and_(self, other: Condition[T]) -> Condition[T]:
        """Chain an AND, binding tighter than any OR already in the chain."""
        return And(self, other)

    def or_(self, other: Condition[T]) -> Condition[T]:
        """Chain an OR."""
        return Or(self, other)

    def __call__(self, data: T) -> Result:
        """Shorthand for evaluate()."""
        return self.evaluate(data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


def _get_condition_name(condition: Condition) -> str:
    """Get a human-readable name for a condition."""
    if isinstance(condition, Leaf):
        return f"Leaf({condition.description})"
    if isinstance(condition, Transform):
        return f"Transform({condition.name})"
    if isinstance(condition, And):
        return "AND"
    if isinstance(condition, Or):
        return "OR"
    if isinstance(condition, Not):
        return "NOT"
    if isinstance(condition, Guard):
        return f"Guard({condition.requirement})"
    return repr(condition)


def _traced_evaluate(
    condition: Condition[T],
    data: T,
    hook: TraceHook,
    config: TraceConfig,
) -> Result:
    """
    Evaluate a condition, reporting it to the trace hook.

    Children are evaluated through their own evaluate(), so the depth is
    carried in a context variable rather than passed down.
    """
    depth = _trace_depth.get()
    token = _trace_depth.set(depth + 1)
    try:
        # Depth limit, nesting and leaf-only mode only suppress the events
        if config.max_depth is not None and depth > config.max_depth:
            return condition._evaluate(data)
        if not config.nested and depth > 0:
            return condition._evaluate(data)
        if config.include_leaf_only and condition.composite:
            return condition._evaluate(data)

        name = _get_condition_name(condition)
        span = hook.on_enter(name, data, depth)
        start = time.perf_counter()
        try:
            result = condition._evaluate(data)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            hook.on_error(span, name, e, duration_ms, depth)
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        hook.on_exit(span, name, result.passed, duration_ms, depth)
        return result
    finally:
        _trace_depth.reset(token)


# =============================================================================
# Leaf Condition
# =============================================================================


class Leaf(Condition[T]):
    """
    A condition backed by a plain predicate.

    The predicate is never allowed to break evaluation: any exception it
    raises is captured as an Error result, which always fails.

    Example:
        positive: Leaf[int] = Leaf("> 0", lambda x: x > 0)
        positive.evaluate(5).passed  # True
    """

    def __init__(self, description: str, predicate: Callable[[T], Any]):
        self.description = description
        self.predicate = predicate

    def _evaluate(self, data: T) -> Result:
        try:
            passed = bool(self.predicate(data))
        except ConditionInterruptedError:
            raise
        except Exception as e:
            return Error(e, self.description)
        return Expectation(self.description, passed)

    def __str__(self) -> str:
        return self.description


# =============================================================================
# Transformation and Guard
# =============================================================================


class Transform(Condition[T], Generic[T, V]):
    """
    Applies a named function to the data, then evaluates a condition on the result.

    If the function raises, the inner condition is not evaluated and the
    failure is reported under the transformation's name.

    Example:
        length = Transform("length", len, equal_to(3))
        str(evaluate("ab", length))  # "expected: length <3> but was: <2>"
    """

    composite = True

    def __init__(self, name: str, fn: Callable[[T], V], condition: Condition[V]):
        self.name = name
        self.fn = fn
        self.condition = condition
        self._description = f"{name} {condition}" if name else str(condition)

    def _evaluate(self, data: T) -> Result:
        try:
            value = self.fn(data)
        except ConditionInterruptedError:
            raise
        except Exception as e:
            return Transformation(self.name, Error(e, str(self.condition)), False)
        result = self.condition.evaluate(value)
        return Transformation(self.name, Actual(value, result), result.passed)

    def __str__(self) -> str:
        return self._description


class Guard(Condition[T]):
    """
    Evaluates a silent requirement before the guarded condition.

    The requirement only shows up in the result when it fails; in that case
    the guarded condition is not evaluated at all. This is how null-safety
    is composed: ``Guard(is_not_none(), has("name").equal_to("x"))`` reports
    "expected: not <None>" instead of an AttributeError.
    """

    composite = True

    def __init__(self, requirement: Condition[T], condition: Condition[T]):
        self.requirement = requirement
        self.condition = condition

    def _evaluate(self, data: T) -> Result:
        required = self.requirement.evaluate(data)
        if required.failed:
            return required
        return self.condition.evaluate(data)

    def __str__(self) -> str:
        return str(self.condition)


# =============================================================================
# Boolean Combinators
# =============================================================================


def _flatten_and_chain(condition: Condition[T]) -> list[Condition[T]]:
    """Flatten nested AND conditions into a list (iteratively)."""
    result: list[Condition[T]] = []
    stack: list[Condition[T]] = [condition]
    while stack:
        current = stack.pop()
        if isinstance(current, And):
            stack.append(current.right)
            stack.append(current.left)
        else:
            result.append(current)
    return result


def _flatten_or_chain(condition: Condition[T]) -> list[Condition[T]]:
    """Flatten nested OR conditions into a list (iteratively)."""
    result: list[Condition[T]] = []
    stack: list[Condition[T]] = [condition]
    while stack:
        current = stack.pop()
        if isinstance(current, Or):
            stack.append(current.right)
            stack.append(current.left)
        else:
            result.append(current)
    return result


@dataclass(frozen=True, eq=False, repr=False)
class And(Condition[T]):
    left: Condition[T]
    right: Condition[T]
    _operands: tuple[Condition[T], ...] = field(init=False)
    _description: str = field(init=False)

    composite = True

    def __post_init__(self) -> None:
        operands = tuple(_flatten_and_chain(self))
        object.__setattr__(self, "_operands", operands)
        object.__setattr__(
            self, "_description", "(" + " and ".join(str(c) for c in operands) + ")"
        )

    def _evaluate(self, data: T) -> Result:
        # No short-circuit: every operand contributes to the diagnostics
        results = [c.evaluate(data) for c in self._operands]
        return Aggregation(" and ", results, all(r.passed for r in results))

    def __str__(self) -> str:
        return self._description


@dataclass(frozen=True, eq=False, repr=False)
class Or(Condition[T]):
    left: Condition[T]
    right: Condition[T]
    _operands: tuple[Condition[T], ...] = field(init=False)
    _description: str = field(init=False)

    composite = True

    def __post_init__(self) -> None:
        operands = tuple(_flatten_or_chain(self))
        object.__setattr__(self, "_operands", operands)
        object.__setattr__(
            self, "_description", "(" + " or ".join(str(c) for c in operands) + ")"
        )

    def _evaluate(self, data: T) -> Result:
        results = [c.evaluate(data) for c in self._operands]
        return Aggregation(" or ", results, any(r.passed for r in results))

    def and_(self, other: Condition[T]) -> Condition[T]:
        # a.or_(b).and_(c) is a or (b and c): the rightmost operand absorbs the AND
        return Or(self.left, self.right.and_(other))

    def __str__(self) -> str:
        return self._description


@dataclass(frozen=True, eq=False, repr=False)
class Not(Condition[T]):
    inner: Condition[T]
    _description: str = field(init=False)

    composite = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "_description", f"not {self.inner}")

    def _evaluate(self, data: T) -> Result:
        return Inverted(self.inner.evaluate(data))

    def __str__(self) -> str:
        return self._description


# =============================================================================
# Keyed and Exception Conditions
# =============================================================================


class MapEntry(Condition[Any]):
    """
    Evaluates a condition on the value stored under a key of a mapping.

    Example:
        str(evaluate({"a": 1}, MapEntry("a", equal_to(2))))
        # "expected: a: <2> but was: <1>"
    """

    composite = True

    def __init__(self, key: Any, condition: Condition[Any]):
        self.key = key
        self.condition = condition

    def _evaluate(self, data: Any) -> Result:
        try:
            value = data.get(self.key)
        except ConditionInterruptedError:
            raise
        except Exception as e:
            return Group(self.key, Error(e, str(self.condition)), False)
        result = self.condition.evaluate(value)
        return Group(self.key, Actual(value, result), result.passed)

    def __str__(self) -> str:
        return f"{self.key}: {self.condition}"


class Throwing(Condition[Callable[[], Any]]):
    """
    Calls the data (a zero-argument callable) and checks the exception it raises.

    Example:
        check_that(lambda: int("x"), Throwing(instance_of(ValueError)))  # True
    """

    composite = True

    def __init__(self, condition: Condition[BaseException]):
        self.condition = condition

    def _evaluate(self, data: Callable[[], Any]) -> Result:
        try:
            data()
        except ConditionInterruptedError:
            raise
        except Exception as e:
            result = self.condition.evaluate(e)
            return Transformation("throwing", Actual(e, result), result.passed)
        return Actual("no exception thrown", Expectation(str(self), False))

    def __str__(self) -> str:
        return f"throwing {self.condition}"


# =============================================================================
# Evaluation Entry Points
# =============================================================================


def evaluate(data: T, condition: Condition[T]) -> Result:
    """
    Evaluate a condition against data.

    The returned result records the data as the actual value, so that
    ``str(result)`` renders the complete mismatch.

    Example:
        result = evaluate("A", equal_to("B"))
        result.passed  # False
        str(result)    # "expected: <B> but was: <A>"
    """
    return Actual(data, condition.evaluate(data))


def check_that(data: T, condition: Condition[T]) -> bool:
    """Evaluate a condition and reduce the result to a plain boolean."""
    visitor = BooleanVisitor()
    condition.evaluate(data).accept(visitor)
    return visitor.value


def assert_that(
    data: T, condition: Condition[T], exception_class: type | None = None
) -> None:
    """
    Assert that the data satisfies the condition.

    Raises:
        AssertionFailure: (or ``exception_class``) with the rendered mismatch
    """
    evaluate(data, condition).raise_if_failed(exception_class)


def evaluate_traced(
    data: T,
    condition: Condition[T],
    hook: TraceHook,
    config: TraceConfig | None = None,
) -> Result:
    """
    Evaluate a condition with explicit tracing.

    Example:
        evaluate_traced(order, order_is_valid, PrintHook())
    """
    with use_tracing(hook, config):
        return evaluate(data, condition)
