"""Trace hooks and configuration for observing condition evaluation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol, TextIO, runtime_checkable

from kondition._types import _trace_config, _trace_hook

# Optional OpenTelemetry imports - only needed if using OpenTelemetryHook
try:
    from opentelemetry.trace import (
        Link as _Link,
    )
    from opentelemetry.trace import (
        Status as _Status,
    )
    from opentelemetry.trace import (
        StatusCode as _StatusCode,
    )
    from opentelemetry.trace import (
        set_span_in_context as _set_span_in_context,
    )

    _HAS_OPENTELEMETRY = True
except ImportError:
    _HAS_OPENTELEMETRY = False
    _Link = None
    _Status = None
    _StatusCode = None
    _set_span_in_context = None


@runtime_checkable
class TraceHook(Protocol):
    """
    Protocol for trace hooks.

    Implement this to integrate with logging, OpenTelemetry, or other
    tracing systems.

    Example:
        class MyHook:
            def on_enter(self, name, data, depth):
                print(f"{'  ' * depth}-> {name}")
                return None  # span token

            def on_exit(self, span, name, ok, duration_ms, depth):
                status = "✔" if ok else "✗"
                print(f"{'  ' * depth}<- {name} {status} ({duration_ms:.2f}ms)")

            def on_error(self, span, name, error, duration_ms, depth):
                print(f"{'  ' * depth}<- {name} ERROR: {error}")
    """

    def on_enter(self, name: str, data: Any, depth: int) -> Any:
        """
        Called before a condition is evaluated.

        Args:
            name: Name/description of the condition
            data: Data the condition is evaluated against
            depth: Nesting depth (0 = root)

        Returns:
            Span token to pass to on_exit (can be None)
        """
        ...

    def on_exit(
        self, span: Any, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        """
        Called after a condition produced its result.

        Args:
            span: Token returned from on_enter
            name: Name/description of the condition
            ok: Whether the result passed
            duration_ms: Evaluation time in milliseconds
            depth: Nesting depth
        """
        ...

    def on_error(
        self, span: Any, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        """
        Called if an exception escapes the evaluation of a condition.

        Predicate faults never get here, they are captured in the result.
        Only interruption of a blocking source does.
        """
        ...


@dataclass
class TraceConfig:
    """
    Configuration for tracing behavior.

    Attributes:
        nested: If True, trace child conditions (AND, OR, NOT operands etc.)
        max_depth: Maximum depth to trace (None = unlimited)
        include_leaf_only: If True, only trace conditions without children
    """

    nested: bool = True
    max_depth: int | None = None
    include_leaf_only: bool = False


@contextmanager
def use_tracing(hook: TraceHook, config: TraceConfig | None = None):
    """
    Context manager to enable tracing for all evaluations in scope.

    Args:
        hook: TraceHook implementation to receive trace events
        config: Optional TraceConfig to customize tracing behavior

    Example:
        with use_tracing(LoggingHook(logger)):
            evaluate(user, is_admin)  # This will be traced

        # Or with custom config
        with use_tracing(PrintHook(), TraceConfig(max_depth=2)):
            evaluate(data, complex_condition)
    """
    hook_token = _trace_hook.set(hook)
    config_token = _trace_config.set(config or TraceConfig())
    try:
        yield
    finally:
        _trace_hook.reset(hook_token)
        _trace_config.reset(config_token)


# =============================================================================
# Built-in Trace Hooks
# =============================================================================


class PrintHook:
    """
    Prints the evaluation tree as it unfolds, one line per node entered and left.

    Args:
        indent: Indentation added per nesting level
        show_data: Also print the data each node is evaluated against
        file: Stream to write to (default: ``sys.stdout`` at call time)

    Example:
        with use_tracing(PrintHook()):
            evaluate("A", equal_to("A") & equal_to("B"))

        # Output:
        # -> AND
        #   -> Leaf(<A>)
        #   <- Leaf(<A>) ✔ (0.01ms)
        #   -> Leaf(<B>)
        #   <- Leaf(<B>) ✗ (0.01ms)
        # <- AND ✗ (0.05ms)
    """

    def __init__(self, indent: str = "  ", show_data: bool = False, file: TextIO | None = None):
        self.indent = indent
        self.show_data = show_data
        self.file = file

    def _write(self, depth: int, line: str) -> None:
        print(self.indent * depth + line, file=self.file)

    def on_enter(self, name: str, data: Any, depth: int) -> None:
        suffix = f" [data={data!r}]" if self.show_data else ""
        self._write(depth, f"-> {name}{suffix}")

    def on_exit(self, span: None, name: str, ok: bool, duration_ms: float, depth: int) -> None:
        self._write(depth, f"<- {name} {'✔' if ok else '✗'} ({duration_ms:.2f}ms)")

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self._write(depth, f"<- {name} raised {type(error).__name__}: {error}")


class LoggingHook:
    """
    Logs every traced node through the standard ``logging`` machinery.

    Passing nodes are logged at ``level``, failing ones at ``failure_level``
    so that a handler can keep only the mismatches. Exceptions escaping a
    node (in practice, interruption of a blocking source) are logged as
    warnings. Each record carries ``condition`` and ``depth`` extras.

    Example:
        logging.basicConfig(level=logging.DEBUG)
        with use_tracing(LoggingHook(failure_level=logging.INFO)):
            evaluate(order, order_is_valid)
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        level: int = logging.DEBUG,
        failure_level: int | None = None,
    ):
        self.logger = logger or logging.getLogger("kondition")
        self.level = level
        self.failure_level = level if failure_level is None else failure_level

    def on_enter(self, name: str, data: Any, depth: int) -> None:
        self.logger.log(
            self.level,
            "evaluating %s",
            name,
            extra={"condition": name, "depth": depth},
        )

    def on_exit(self, span: None, name: str, ok: bool, duration_ms: float, depth: int) -> None:
        self.logger.log(
            self.level if ok else self.failure_level,
            "%s %s in %.2fms",
            name,
            "passed" if ok else "failed",
            duration_ms,
            extra={"condition": name, "depth": depth},
        )

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self.logger.warning(
            "%s aborted after %.2fms: %r",
            name,
            duration_ms,
            error,
            extra={"condition": name, "depth": depth},
        )


class OpenTelemetryHook:
    """
    OpenTelemetry trace hook with:

    - Correct parent/child span hierarchy
    - Depth-based span suppression
    - Leaf-as-event optimization
    - Logical operator semantics (AND / OR / NOT)
    - Optional sibling span linking

    Requires: pip install opentelemetry-api
    """

    def __init__(
        self,
        tracer,
        *,
        max_span_depth: int | None = None,
        link_sibling_spans: bool = True,
        leaves_as_events: bool = False,
    ):
        if not _HAS_OPENTELEMETRY:
            raise ImportError(
                "OpenTelemetry is not installed. "
                "Install it with: pip install opentelemetry-api"
            )
        self.tracer = tracer
        self.max_span_depth = max_span_depth
        self.link_sibling_spans = link_sibling_spans
        self.leaves_as_events = leaves_as_events

        self._span_stack: list[Any] = []
        self._last_span_at_depth: dict[int, Any] = {}

    # -------------------------------------------------
    # Span lifecycle
    # -------------------------------------------------

    def on_enter(self, name: str, data: Any, depth: int) -> Any:
        assert _set_span_in_context is not None
        assert _Link is not None

        if self.max_span_depth is not None and depth > self.max_span_depth:
            return None

        parent = self._span_stack[-1] if self._span_stack else None
        parent_ctx = _set_span_in_context(parent) if parent else None

        if self.leaves_as_events and parent and self._is_leaf(name):
            parent.add_event(
                "leaf.evaluate",
                {
                    "kondition.leaf": name,
                    "kondition.depth": depth,
                },
            )
            return None

        links = []
        if self.link_sibling_spans and depth in self._last_span_at_depth:
            links.append(_Link(self._last_span_at_depth[depth].get_span_context()))

        span = self.tracer.start_span(
            name,
            context=parent_ctx,
            links=links or None,
        )
        self._annotate_span(span, name, depth)

        self._span_stack.append(span)
        self._last_span_at_depth[depth] = span
        return span

    def on_exit(
        self,
        span: Any,
        name: str,
        ok: bool,
        duration_ms: float,
        depth: int,
    ) -> None:
        if span is None:
            return

        assert _Status is not None
        assert _StatusCode is not None

        span.set_attribute("kondition.passed", ok)
        span.set_attribute("kondition.duration_ms", duration_ms)
        span.set_attribute("kondition.depth", depth)

        if not ok:
            span.set_status(_Status(_StatusCode.ERROR))

        span.end()
        self._span_stack.pop()

    def on_error(
        self,
        span: Any,
        name: str,
        error: Exception,
        duration_ms: float,
        depth: int,
    ) -> None:
        if span is None:
            return

        assert _Status is not None
        assert _StatusCode is not None

        span.set_attribute("kondition.passed", False)
        span.set_attribute("kondition.duration_ms", duration_ms)
        span.set_attribute("kondition.depth", depth)
        span.record_exception(error)
        span.set_status(_Status(_StatusCode.ERROR, str(error)))

        span.end()
        self._span_stack.pop()

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------

    def _is_leaf(self, name: str) -> bool:
        return name.startswith("Leaf(")

    def _annotate_span(self, span: Any, name: str, depth: int) -> None:
        if name in {"AND", "OR", "NOT"}:
            span.set_attribute("kondition.operator", name)
            span.set_attribute("kondition.node_type", "logical")
        elif name.startswith("Leaf("):
            span.set_attribute("kondition.node_type", "leaf")
        else:
            span.set_attribute("kondition.node_type", "structural")

        span.set_attribute("kondition.name", name)
        span.set_attribute("kondition.depth", depth)
