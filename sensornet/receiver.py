"""Collecting endpoint (the gateway)."""
from __future__ import annotations

import logging
from typing import Hashable, List, Optional

from .application import Application
from .channel import Channel, Delivery
from .transmitter import parse_measurement

_logger = logging.getLogger(__name__)


class Receiver(Application):
    """Application that records every payload delivered to its address.

    The handler is registered on start and removed on stop; `deliveries` keeps
    `(payload, source, time)` records in arrival order and is never trimmed.
    """

    def __init__(self, channel: Channel, address: Optional[Hashable] = None, name: Optional[str] = None):
        super().__init__(name=name)
        self.channel = channel
        self._address = address
        self.deliveries: List[Delivery] = []

    @property
    def address(self) -> Hashable:
        if self._address is not None:
            return self._address
        return self.node.name if self.node is not None else self.name

    def on_start(self) -> None:
        self.channel.register_receive_handler(self.address, self.handle)

    def on_stop(self) -> None:
        self.channel.unregister_receive_handler(self.address, self.handle)

    def handle(self, payload: bytes, source: Hashable, time: float) -> None:
        self.deliveries.append(Delivery(payload, source, time))
        _logger.info("Gateway received: %s", payload.decode("ascii", errors="replace"))

    # --- queries ---
    def count_from(self, source: Hashable) -> int:
        return sum(1 for d in self.deliveries if d.source == source)

    def sources(self) -> List[Hashable]:
        """Distinct sources in order of first arrival."""
        seen = []
        for d in self.deliveries:
            if d.source not in seen:
                seen.append(d.source)
        return seen

    def values(self) -> List[float]:
        return [parse_measurement(d.payload)[1] for d in self.deliveries]
