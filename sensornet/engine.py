"""Simulation engine tying the scheduler, the channel, nodes and applications together.

Each engine owns its own `Scheduler` and `Channel`, so several simulations can
live side by side in one process. The engine keeps registries for nodes and
installed applications, installs applications on nodes, runs the scheduler up
to a hard stop time and tears everything down afterwards.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from .application import Application
from .channel import Channel
from .node import Node
from .scheduler import Scheduler

_logger = logging.getLogger(__name__)


class SimulationEngine:
    def __init__(self, start_time: float = 0.0, channel_delay: float = 0.0):
        """Create an engine with a fresh `Scheduler`, a `Channel` and empty registries.

        Args:
            start_time: Virtual time the scheduler starts at.
            channel_delay: Propagation delay applied to every delivery.
        """
        self.scheduler = Scheduler(start_time=start_time)
        self.channel = Channel(self.scheduler, delay=channel_delay)
        self.nodes: Dict[str, Node] = {}
        self.applications: List[Application] = []
        self.destroyed = False

    @property
    def now(self) -> float:
        return self.scheduler.now

    # --- node registry ---
    def add_node(self, node: Union[Node, str]) -> Node:
        """Register a `Node` (or create one from a name) and return it.

        Raises ValueError on name collision.
        """
        if isinstance(node, str):
            node = Node(node)
        if node.name in self.nodes:
            raise ValueError(f"node already registered: {node.name}")
        self.nodes[node.name] = node
        return node

    def get_node(self, name: str) -> Optional[Node]:
        return self.nodes.get(name)

    def remove_node(self, name: str) -> Optional[Node]:
        return self.nodes.pop(name, None)

    # --- applications ---
    def install(self, app: Application, node: Union[Node, str], start_time: float = 0.0, stop_time: Optional[float] = None) -> Application:
        """Install `app` on `node` and schedule its lifecycle.

        `node` may be a registered node's name. Unknown names raise KeyError.
        """
        if isinstance(node, str):
            name = node
            node = self.get_node(name)
            if node is None:
                raise KeyError(name)
        elif node.name not in self.nodes:
            self.add_node(node)
        app.install(self.scheduler, node, start_time=start_time, stop_time=stop_time)
        node.add_application(app)
        self.applications.append(app)
        return app

    def run(self, until: Optional[float] = None) -> int:
        count = self.scheduler.run(until=until)
        _logger.info("run finished at t=%s after %d event(s)", self.scheduler.now, count)
        return count

    def destroy(self) -> None:
        """Stop every application and discard whatever is still queued."""
        if self.destroyed:
            return
        for app in self.applications:
            app.teardown()
        dropped = self.scheduler.clear()
        self.destroyed = True
        _logger.debug("destroyed at t=%s, %d pending event(s) discarded", self.scheduler.now, dropped)

    def print_status(self) -> None:
        """Print a compact status of the engine and the scheduler queue.

        Shows current virtual time, number of events queued, next and last
        event times (if any), and one line per queued event:
          SEQ | TIME | category | node
        """
        events = self.scheduler.peek_events()
        count = len(events)
        now = self.scheduler.now

        print(f"Status at t={now:.3f}: {count} event(s) in queue")
        if events:
            print(f"Next event: t={events[0][0]:.3f}")
            print(f"Last  event: t={events[-1][0]:.3f}")

        print("Events:")
        for run_at, event in events:
            category = event.category or ""
            node = event.node.name if event.node is not None else ""
            print(f"{event.seq:>3} | {run_at:10.3f} | {category:12s} | {node}")
