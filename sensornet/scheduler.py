"""A discrete-event scheduler driven by a virtual clock.

The scheduler is synchronous and single threaded: it keeps a monotonic
simulation `now` (float seconds) and a heap of pending events ordered by
`(time, seq)`. Sequence numbers are handed out on insertion, so events that
share a due time run in the order they were scheduled.

Callbacks may schedule or cancel other events while they run; such changes
only affect what is dispatched afterwards.
"""
from heapq import heappush, heappop
import logging
import math
from typing import Any, Callable, List, Optional, Tuple, TYPE_CHECKING

from .errors import InvalidDelay
from .event import Event, EventHandle

if TYPE_CHECKING:
    from .node import Node

_logger = logging.getLogger(__name__)


def _check_time(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{what} must be a number of seconds")
    if math.isnan(value):
        raise InvalidDelay(f"{what} must not be NaN")
    return float(value)


class Scheduler:
    """Discrete-event scheduler using virtual time in seconds.

    Methods:
    - `schedule(delay, callback, *args, **kwargs)`: schedule callback after `delay`.
    - `schedule_at(time, callback, *args, **kwargs)`: schedule at an absolute time.
    - `cancel(handle)`: drop a pending event; no-op otherwise.
    - `step()`: execute the next scheduled event and advance time.
    - `run(until=None)`: run until the queue is empty or past `until`.
    """

    def __init__(self, start_time: float = 0.0):
        self._time: float = _check_time(start_time, "start_time")
        self._queue: List[Tuple[float, int, Event]] = []
        self._counter: int = 0
        self._pending: int = 0
        self.dispatched: int = 0

    @property
    def now(self) -> float:
        return self._time

    def __len__(self) -> int:
        return self._pending

    @property
    def is_empty(self) -> bool:
        return self._pending == 0

    def schedule(self, delay: float, callback: Callable[..., Any], *args, category: Optional[str] = None, node: Optional["Node"] = None, **kwargs) -> EventHandle:
        """Schedule `callback(*args, **kwargs)` to run `delay` seconds from now.

        Raises `InvalidDelay` for a negative delay; the scheduler is left
        untouched in that case. Returns a handle that can cancel the event.
        """
        delay = _check_time(delay, "delay")
        if delay < 0:
            raise InvalidDelay(f"delay must be >= 0, got {delay}")
        return self._push(self._time + delay, callback, args, kwargs, category, node)

    def schedule_at(self, time: float, callback: Callable[..., Any], *args, category: Optional[str] = None, node: Optional["Node"] = None, **kwargs) -> EventHandle:
        """Schedule `callback` at absolute virtual `time`.

        A time in the past is clamped to `now`, so the event runs on the next
        advance instead of travelling backwards.
        """
        time = _check_time(time, "time")
        return self._push(max(time, self._time), callback, args, kwargs, category, node)

    def _push(self, run_at: float, callback, args, kwargs, category, node) -> EventHandle:
        if not callable(callback):
            raise TypeError("callback must be callable")
        event = Event(time=run_at, seq=self._counter, callback=callback, args=args, kwargs=kwargs, category=category, node=node)
        heappush(self._queue, (run_at, self._counter, event))
        self._counter += 1
        self._pending += 1
        return EventHandle(self, event)

    def cancel(self, handle: Optional[EventHandle]) -> None:
        """Cancel the event behind `handle` if it has not run yet.

        Cancelled events stay in the heap and are skipped when they reach the
        front.
        """
        if handle is None:
            return
        event = handle.event
        if not event.pending:
            return
        event.cancelled = True
        self._pending -= 1

    def _discard_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heappop(self._queue)

    def next_time(self) -> Optional[float]:
        """Due time of the next pending event, or None when idle."""
        self._discard_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def step(self) -> Optional[Any]:
        self._discard_cancelled()
        if not self._queue:
            return None
        run_at, _idx, event = heappop(self._queue)
        self._pending -= 1
        self._time = run_at
        event.dispatched = True
        self.dispatched += 1
        _logger.debug("t=%.6f dispatch %r", run_at, event)
        return event.callback(*event.args, **event.kwargs)

    def run(self, until: Optional[float] = None) -> int:
        """Run events until the queue is empty or the next one is due after `until`.

        Events due exactly at `until` are dispatched. If `until` is given, `now`
        ends at `until` even when the queue drained earlier. Returns the number
        of events dispatched by this call.
        """
        if until is not None:
            until = _check_time(until, "until")

        count = 0
        while True:
            next_time = self.next_time()
            if next_time is None:
                break
            if until is not None and next_time > until:
                break
            self.step()
            count += 1

        if until is not None and self._time < until:
            self._time = until
        return count

    def clear(self) -> int:
        """Discard every pending event; returns how many were dropped."""
        dropped = 0
        for _run_at, _idx, event in self._queue:
            if event.pending:
                event.cancelled = True
                dropped += 1
        self._queue.clear()
        self._pending = 0
        return dropped

    def peek_events(self, category: Optional[str] = None, node: Optional["Node"] = None, limit: Optional[int] = None) -> List[Tuple[float, Event]]:
        """Look ahead at upcoming events without modifying the queue.

        Returns `(time, Event)` pairs in dispatch order, optionally filtered by
        category and/or node. If both filters are given, both must match.
        """
        result = []
        for run_at, _idx, event in sorted(self._queue, key=lambda item: (item[0], item[1])):
            if event.cancelled:
                continue
            if category is not None and event.category != category:
                continue
            if node is not None and event.node is not node:
                continue

            result.append((run_at, event))

            if limit is not None and len(result) >= limit:
                break

        return result
