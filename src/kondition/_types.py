"""Shared type variables, sentinels and context variables."""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from kondition._tracing import TraceConfig, TraceHook

T = TypeVar("T")
V = TypeVar("V")


class _EndOfSequence:
    """Marker returned by a source once no further item is available."""

    _instance: _EndOfSequence | None = None

    def __new__(cls) -> _EndOfSequence:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END: Any = _EndOfSequence()

# Context variables for global tracing
_trace_hook: ContextVar[TraceHook | None] = ContextVar("trace_hook", default=None)
_trace_config: ContextVar[TraceConfig | None] = ContextVar(
    "trace_config", default=None
)
_trace_depth: ContextVar[int] = ContextVar("trace_depth", default=0)
