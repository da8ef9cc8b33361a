"""Application lifecycle on top of the scheduler.

An application is installed on a node with a start time and an optional stop
time. Installing it schedules both lifecycle actions; from then on the
scheduler drives it through

    CREATED -> SCHEDULED -> RUNNING -> STOPPED

The state machine only moves forward. Variants plug in through `on_start` and
`on_stop`; the base class owns the single handle for recurring work and
cancels it on stop.
"""
from __future__ import annotations

from enum import Enum
import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

from .errors import LifecycleError
from .event import EventHandle

if TYPE_CHECKING:
    from .node import Node
    from .scheduler import Scheduler

_logger = logging.getLogger(__name__)


class AppState(Enum):
    CREATED = "created"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    STOPPED = "stopped"


class Application:
    """Base class for behaviour installed on a node."""

    def __init__(self, name: Optional[str] = None):
        self.name = name or type(self).__name__
        self.node: Optional["Node"] = None
        self.scheduler: Optional["Scheduler"] = None
        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None
        self.state = AppState.CREATED
        self.history: List[Tuple[Optional[float], AppState]] = []
        # Handle for the recurring work of the variant (at most one).
        self._work: Optional[EventHandle] = None
        self._start_event: Optional[EventHandle] = None
        self._stop_event: Optional[EventHandle] = None
        self._stop_requested = False

    @property
    def running(self) -> bool:
        return self.state is AppState.RUNNING

    @property
    def stopped(self) -> bool:
        return self.state is AppState.STOPPED

    def _set_state(self, state: AppState) -> None:
        now = self.scheduler.now if self.scheduler is not None else None
        self.state = state
        self.history.append((now, state))
        _logger.debug("%s: %s at t=%s", self.name, state.value, now)

    def install(self, scheduler: "Scheduler", node: "Node", start_time: float = 0.0, stop_time: Optional[float] = None) -> None:
        """Bind to `node` and schedule the start (and optional stop) action.

        Both times are absolute. A start time earlier than `now` runs on the
        next advance.
        """
        if self.state is not AppState.CREATED:
            raise LifecycleError(f"{self.name} is already installed ({self.state.value})")
        self.scheduler = scheduler
        self.node = node
        self.start_time = float(start_time)
        self.stop_time = None if stop_time is None else float(stop_time)

        self._start_event = scheduler.schedule_at(self.start_time, self._start, category="app-start", node=node)
        if self.stop_time is not None:
            self._stop_event = scheduler.schedule_at(self.stop_time, self.stop, category="app-stop", node=node)
        self._set_state(AppState.SCHEDULED)

    def _start(self) -> None:
        if self.state is not AppState.SCHEDULED:
            return
        self._set_state(AppState.RUNNING)
        if self._stop_requested:
            # Stop time was earlier than the start time: run nothing.
            self.stop()
            return
        self.on_start()

    def stop(self) -> None:
        """Stop the application. Safe to call any number of times."""
        if self.state is AppState.STOPPED:
            return
        if self.state is AppState.SCHEDULED:
            self._stop_requested = True
            return
        if self.state is AppState.CREATED:
            self._set_state(AppState.STOPPED)
            return

        self._set_state(AppState.STOPPED)
        self.cancel_work()
        if self._stop_event is not None:
            self._stop_event.cancel()
        self.on_stop()

    def teardown(self) -> None:
        """Stop for good, dropping any lifecycle action still queued."""
        if self._start_event is not None:
            self._start_event.cancel()
        if self.state is AppState.SCHEDULED:
            self._set_state(AppState.STOPPED)
        self.stop()
        if self._stop_event is not None:
            self._stop_event.cancel()

    # --- recurring work ---
    def schedule_work(self, delay: float, callback, *args, **kwargs) -> EventHandle:
        """Schedule the next piece of recurring work, replacing the stored handle."""
        self._work = self.scheduler.schedule(delay, callback, *args, category="app-work", node=self.node, **kwargs)
        return self._work

    def schedule_work_at(self, time: float, callback, *args, **kwargs) -> EventHandle:
        """Absolute-time variant of `schedule_work`."""
        self._work = self.scheduler.schedule_at(time, callback, *args, category="app-work", node=self.node, **kwargs)
        return self._work

    def cancel_work(self) -> None:
        if self._work is not None:
            self._work.cancel()
            self._work = None

    @property
    def work_handle(self) -> Optional[EventHandle]:
        return self._work

    # --- hooks ---
    def on_start(self) -> None:
        """Called when the start action fires. Override in subclasses."""
        return None

    def on_stop(self) -> None:
        """Called once when the application stops. Override in subclasses."""
        return None

    def __repr__(self) -> str:  # pragma: no cover - trivial
        node = self.node.name if self.node is not None else None
        return f"{type(self).__name__}(name={self.name!r}, node={node!r}, state={self.state.value})"
