"""Packet delivery between endpoints.

The channel stands in for everything below the application layer. It only
knows two things: which handler receives payloads for an address, and how
long a payload takes to get there. Delivery is never a direct call; `send`
enqueues a delivery event on the scheduler, so arrivals take part in the same
`(time, seq)` ordering as every other event.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, NamedTuple, Optional

from .errors import SendError
from .scheduler import Scheduler

_logger = logging.getLogger(__name__)

ReceiveHandler = Callable[[bytes, Hashable, float], Any]


class Delivery(NamedTuple):
    payload: bytes
    source: Hashable
    time: float


class Channel:
    def __init__(self, scheduler: Scheduler, delay: float = 0.0):
        if delay < 0:
            raise ValueError("channel delay must be >= 0")
        self.scheduler = scheduler
        self.delay = float(delay)
        self._handlers: Dict[Hashable, ReceiveHandler] = {}
        self.sent = 0
        self.delivered = 0
        self.dropped = 0

    # --- receive side ---
    def register_receive_handler(self, endpoint: Hashable, handler: ReceiveHandler) -> None:
        """Route payloads addressed to `endpoint` to `handler`.

        One handler per endpoint; registering again replaces the old one.
        """
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[endpoint] = handler

    def unregister_receive_handler(self, endpoint: Hashable, handler: Optional[ReceiveHandler] = None) -> Optional[ReceiveHandler]:
        """Remove the handler on `endpoint`.

        With `handler` given, only remove it if it is still the registered one.
        """
        current = self._handlers.get(endpoint)
        if current is None or (handler is not None and current != handler):
            return None
        return self._handlers.pop(endpoint)

    def has_handler(self, endpoint: Hashable) -> bool:
        return endpoint in self._handlers

    # --- send side ---
    def open(self, address: Hashable) -> "Endpoint":
        """Open a send endpoint whose packets carry `address` as their source."""
        return Endpoint(self, address)

    def send(self, payload: bytes, destination: Hashable, source: Hashable = None) -> None:
        """Queue `payload` for delivery to `destination`.

        Raises `SendError` when the payload is not bytes-like or nobody listens
        on `destination`.
        """
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise SendError(f"payload must be bytes, got {type(payload).__name__}", destination)
        if destination not in self._handlers:
            raise SendError(f"destination unreachable: {destination!r}", destination)
        data = bytes(payload)
        self.scheduler.schedule(self.delay, self._deliver, data, source, destination, category="delivery")
        self.sent += 1

    def _deliver(self, payload: bytes, source: Hashable, destination: Hashable) -> None:
        handler = self._handlers.get(destination)
        if handler is None:
            # Receiver went away while the packet was in flight.
            self.dropped += 1
            _logger.debug("dropping packet from %r: no handler on %r", source, destination)
            return
        self.delivered += 1
        handler(payload, source, self.scheduler.now)


class Endpoint:
    """A send socket bound to one source address."""

    def __init__(self, channel: Channel, address: Hashable):
        self.channel = channel
        self.address = address
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, payload: bytes, destination: Hashable) -> None:
        if self._closed:
            raise SendError(f"endpoint {self.address!r} is closed", destination)
        self.channel.send(payload, destination, source=self.address)

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"Endpoint({self.address!r}{', closed' if self._closed else ''})"
