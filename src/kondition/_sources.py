"""
Pull-based sources of items for the sequence matchers.

Every source honors the same contract: ``pull()`` returns the next item or
the ``END`` sentinel. ``None`` is a legal item, so matchers always compare
against ``END`` by identity.
"""

from __future__ import annotations

import queue as _queue
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable, Iterator
from typing import Any, Generic

from kondition._errors import ConditionInterruptedError
from kondition._types import END, T

# Wait slice used while watching a cancel event
_CANCEL_POLL_INTERVAL = 0.05


class Source(ABC, Generic[T]):
    """A cursor over an ordered run of items."""

    @abstractmethod
    def pull(self) -> Any:
        """Return the next item, or END if no further item is available."""
        ...

    def __iter__(self) -> Iterator[T]:
        while (item := self.pull()) is not END:
            yield item


class FiniteSource(Source[T]):
    """Cursor over an already materialized iterable. Never blocks."""

    def __init__(self, items: Iterable[T]):
        self._iterator = iter(items)

    def pull(self) -> Any:
        return next(self._iterator, END)

    def __repr__(self) -> str:
        return "FiniteSource()"


class LiveQueue(Generic[T]):
    """
    Thread-safe queue shared between a producer and a consumer.

    Producers ``put()`` items and every waiting consumer is notified. A
    consumer ``poll()``s with a deadline. ``interrupt()`` makes current and
    future waits raise ConditionInterruptedError until ``resume()`` is called.

    Example:
        events = LiveQueue()
        worker = threading.Thread(target=lambda: events.put("started"))
        worker.start()
        assert_that(events, blocking_queue(starts_with(["started"]), timeout=1.0))
    """

    def __init__(self, items: Iterable[T] = ()):
        self._items: deque[T] = deque(items)
        self._condition = threading.Condition()
        self._interrupted = False

    def put(self, item: T) -> None:
        with self._condition:
            self._items.append(item)
            self._condition.notify_all()

    append = put

    def extend(self, items: Iterable[T]) -> None:
        with self._condition:
            self._items.extend(items)
            self._condition.notify_all()

    def poll(self, timeout: float = 0.0) -> Any:
        """Remove and return the oldest item, waiting up to ``timeout`` seconds."""
        deadline = time.monotonic() + timeout
        with self._condition:
            while not self._items:
                if self._interrupted:
                    raise ConditionInterruptedError(self)
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return END
                self._condition.wait(remaining)
            if self._interrupted:
                raise ConditionInterruptedError(self)
            return self._items.popleft()

    def interrupt(self) -> None:
        with self._condition:
            self._interrupted = True
            self._condition.notify_all()

    def resume(self) -> None:
        with self._condition:
            self._interrupted = False

    def __len__(self) -> int:
        with self._condition:
            return len(self._items)

    def __repr__(self) -> str:
        return f"LiveQueue({list(self._items)!r})"


class QueueSource(Source[T]):
    """
    Non-blocking cursor over a mutable queue.

    Items are removed as they are pulled; once the queue is empty the
    source returns END.
    """

    def __init__(self, items: deque[T] | _queue.Queue | LiveQueue[T] | list[T]):
        self.items = items

    def pull(self) -> Any:
        items = self.items
        if isinstance(items, LiveQueue):
            return items.poll(0.0)
        if isinstance(items, _queue.Queue):
            try:
                return items.get_nowait()
            except _queue.Empty:
                return END
        if not items:
            return END
        if isinstance(items, deque):
            return items.popleft()
        return items.pop(0)

    def __repr__(self) -> str:
        return f"QueueSource({self.items!r})"


class BlockingSource(Source[T]):
    """
    Bounded-wait cursor over a queue fed by another thread.

    Each ``pull()`` waits up to ``timeout`` seconds for an item and returns
    END if none arrived. The worst case total wait of a matcher is therefore
    the number of pulls times the timeout.

    Waiting can be cancelled with ``LiveQueue.interrupt()`` or by setting
    the ``cancel`` event; both raise ConditionInterruptedError, which is
    never mistaken for the end of the data.

    Args:
        items: A LiveQueue or queue.Queue shared with the producer
        timeout: Maximum wait per item in seconds (default: 1.0)
        cancel: Optional event that aborts the wait when set
    """

    def __init__(
        self,
        items: LiveQueue[T] | _queue.Queue,
        timeout: float = 1.0,
        cancel: threading.Event | None = None,
    ):
        self.items = items
        self.timeout = timeout
        self.cancel = cancel

    def _poll(self, timeout: float) -> Any:
        if isinstance(self.items, LiveQueue):
            return self.items.poll(timeout)
        try:
            return self.items.get(timeout=timeout)
        except _queue.Empty:
            return END

    def pull(self) -> Any:
        if self.cancel is None:
            return self._poll(self.timeout)
        return self._sliced_pull()

    def _sliced_pull(self) -> Any:
        deadline = time.monotonic() + self.timeout
        while True:
            if self.cancel is not None and self.cancel.is_set():
                raise ConditionInterruptedError(self)
            remaining = deadline - time.monotonic()
            item = self._poll(max(0.0, min(remaining, _CANCEL_POLL_INTERVAL)))
            if item is not END:
                return item
            if remaining <= _CANCEL_POLL_INTERVAL:
                return END

    def __repr__(self) -> str:
        return f"BlockingSource({self.items!r}, timeout={self.timeout})"


def as_source(data: Any) -> Source[Any] | None:
    """
    Coerce data into a Source.

    Sources are returned unchanged, queues are consumed without blocking and
    any other iterable is read through a FiniteSource. ``None`` stays None,
    which the matchers report as a failure.
    """
    if data is None or isinstance(data, Source):
        return data
    if isinstance(data, (deque, _queue.Queue, LiveQueue)):
        return QueueSource(data)
    return FiniteSource(data)
