"""Periodic measurement transmitter.

`PeriodicTransmitter` is the sensor side of the network: once running it
sends one reading immediately and then one every `interval` seconds until it
is stopped. Each fire cycle reschedules itself, so there is never more than
one pending fire per transmitter.
"""
from __future__ import annotations

import logging
import math
import random
from typing import Callable, Hashable, Optional, Tuple

from .application import Application
from .channel import Channel, Endpoint
from .errors import SendError

_logger = logging.getLogger(__name__)


class Measurement:
    """Simulated analog reading, uniformly distributed in `[low, high]`.

    Calling the object returns a fresh payload such as `b"pH: 7.12346"`. Pass
    an `rng` (or a `seed`) to make the sequence reproducible.
    """

    def __init__(self, label: str = "pH", low: float = 6.0, high: float = 8.0, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        if high < low:
            raise ValueError("measurement range must satisfy low <= high")
        self.label = label
        self.low = float(low)
        self.high = float(high)
        self.rng = rng if rng is not None else random.Random(seed)

    def sample(self) -> float:
        return self.rng.uniform(self.low, self.high)

    def encode(self, value: float) -> bytes:
        return f"{self.label}: {value:g}".encode("ascii")

    def __call__(self) -> bytes:
        return self.encode(self.sample())


def parse_measurement(payload: bytes) -> Tuple[str, float]:
    """Split a `b"<label>: <value>"` payload into its label and value."""
    text = bytes(payload).decode("ascii")
    label, sep, value = text.partition(":")
    if not sep:
        raise ValueError(f"not a measurement payload: {text!r}")
    return label.strip(), float(value)


class PeriodicTransmitter(Application):
    def __init__(self, channel: Channel, destination: Hashable, interval: float = 2.0, payload_factory: Optional[Callable[[], bytes]] = None, name: Optional[str] = None, seed: Optional[int] = None):
        super().__init__(name=name)
        if not (interval > 0) or math.isinf(interval):
            raise ValueError(f"interval must be a finite number > 0, got {interval!r}")
        self.channel = channel
        self.destination = destination
        self.interval = float(interval)
        self.payload_factory = payload_factory or Measurement(seed=seed)
        self.endpoint: Optional[Endpoint] = None
        self.sent = 0
        self.send_failures = 0
        self._origin = 0.0
        self._cycles = 0
        self.last_error: Optional[SendError] = None

    @property
    def address(self) -> Hashable:
        return self.node.name if self.node is not None else self.name

    def on_start(self) -> None:
        self.endpoint = self.channel.open(self.address)
        self._origin = self.scheduler.now
        self._cycles = 0
        self.fire()

    def fire(self) -> None:
        """One fire cycle: send a payload, then schedule the next cycle."""
        # A stop due at the same tick may already have run.
        if not self.running:
            return

        payload = self.payload_factory()
        try:
            self.endpoint.send(payload, self.destination)
        except SendError as exc:
            self.send_failures += 1
            self.last_error = exc
            _logger.warning("%s: send to %r failed at t=%s: %s; stopping", self.name, self.destination, self.scheduler.now, exc)
            self.stop()
            return

        self.sent += 1
        _logger.debug("%s sent %r at t=%s", self.name, payload, self.scheduler.now)
        # Absolute fire time on a nanosecond grid, counted from the start time.
        self._cycles += 1
        self.schedule_work_at(round(self._origin + self._cycles * self.interval, 9), self.fire)

    def on_stop(self) -> None:
        if self.endpoint is not None:
            self.endpoint.close()
