"""Event objects stored in the scheduler queue.

An `Event` pairs a due time with the callback to run and the sequence number
assigned on insertion. `EventHandle` is what callers get back from
`Scheduler.schedule`; it can cancel the event exactly once, every later call
is a no-op.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .node import Node
    from .scheduler import Scheduler


@dataclass(eq=False)
class Event:
    time: float
    seq: int
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    category: Optional[str] = None
    node: Optional["Node"] = None
    cancelled: bool = False
    dispatched: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.dispatched)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        parts = [f"time={self.time!r}", f"seq={self.seq}", f"callback={name}"]
        if self.category is not None:
            parts.append(f"category={self.category!r}")
        if self.node is not None:
            parts.append(f"node={self.node.name!r}")
        if self.cancelled:
            parts.append("cancelled")
        return f"Event({', '.join(parts)})"


class EventHandle:
    """Cancellation token for a scheduled `Event`.

    The handle does not own the event; the scheduler does. Cancelling a
    handle whose event already ran or was already cancelled does nothing.
    """

    __slots__ = ("_scheduler", "_event")

    def __init__(self, scheduler: "Scheduler", event: Event):
        self._scheduler = scheduler
        self._event = event

    @property
    def time(self) -> float:
        return self._event.time

    @property
    def seq(self) -> int:
        return self._event.seq

    @property
    def pending(self) -> bool:
        return self._event.pending

    @property
    def cancelled(self) -> bool:
        return self._event.cancelled

    @property
    def event(self) -> Event:
        return self._event

    def cancel(self) -> None:
        self._scheduler.cancel(self)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        state = "pending" if self.pending else ("cancelled" if self.cancelled else "done")
        return f"EventHandle(time={self.time!r}, seq={self.seq}, {state})"
