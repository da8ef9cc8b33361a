"""Scenario configuration for a sensor network run.

A scenario describes one gateway and a group of identical periodic sensors.
It is usually loaded from YAML:

    name: ph-network
    seed: 42
    duration: 10.0
    channel:
      delay: 0.0
    gateway:
      name: gateway
      start: 0.0
    sensors:
      count: 5
      prefix: sensor
      start: 2.0
      stop: null
      interval: 2.0
      measurement:
        label: pH
        low: 6.0
        high: 8.0

Every key is optional; missing ones take the defaults above.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from pathlib import Path
import random
from typing import Any, Dict, Optional, Union

import yaml

from .engine import SimulationEngine
from .errors import ScenarioError
from .receiver import Receiver
from .transmitter import Measurement, PeriodicTransmitter

_logger = logging.getLogger(__name__)


def _number(data: Dict[str, Any], key: str, default: Optional[float], *, allow_none: bool = False) -> Optional[float]:
    value = data.get(key, default)
    if value is None:
        if allow_none:
            return None
        raise ScenarioError(f"'{key}' is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScenarioError(f"'{key}' must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ScenarioError(f"'{key}' must be finite, got {value!r}")
    return float(value)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ScenarioError(f"'{key}' must be a mapping")
    return value


@dataclass
class MeasurementConfig:
    label: str = "pH"
    low: float = 6.0
    high: float = 8.0


@dataclass
class SensorConfig:
    count: int = 5
    prefix: str = "sensor"
    start: float = 2.0
    stop: Optional[float] = None
    interval: float = 2.0
    measurement: MeasurementConfig = field(default_factory=MeasurementConfig)

    def names(self):
        return [f"{self.prefix}-{i}" for i in range(self.count)]


@dataclass
class Scenario:
    name: str = "ph-network"
    seed: Optional[int] = None
    duration: float = 10.0
    channel_delay: float = 0.0
    gateway: str = "gateway"
    gateway_start: float = 0.0
    sensors: SensorConfig = field(default_factory=SensorConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Scenario":
        """Build a Scenario from a plain mapping (as produced by `yaml.safe_load`)."""
        data = data or {}
        if not isinstance(data, dict):
            raise ScenarioError("scenario must be a mapping")

        seed = data.get("seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ScenarioError(f"'seed' must be an integer, got {seed!r}")

        channel = _section(data, "channel")
        gateway = _section(data, "gateway")
        sensors = _section(data, "sensors")
        meas = _section(sensors, "measurement")

        count = sensors.get("count", 5)
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ScenarioError(f"'count' must be a non-negative integer, got {count!r}")

        measurement = MeasurementConfig(
            label=str(meas.get("label", "pH")),
            low=_number(meas, "low", 6.0),
            high=_number(meas, "high", 8.0),
        )
        if measurement.high < measurement.low:
            raise ScenarioError("measurement 'high' must be >= 'low'")

        sensor_cfg = SensorConfig(
            count=count,
            prefix=str(sensors.get("prefix", "sensor")),
            start=_number(sensors, "start", 2.0),
            stop=_number(sensors, "stop", None, allow_none=True),
            interval=_number(sensors, "interval", 2.0),
            measurement=measurement,
        )
        if sensor_cfg.interval <= 0:
            raise ScenarioError("'interval' must be > 0")

        scenario = cls(
            name=str(data.get("name", "ph-network")),
            seed=seed,
            duration=_number(data, "duration", 10.0),
            channel_delay=_number(channel, "delay", 0.0),
            gateway=str(gateway.get("name", "gateway")),
            gateway_start=_number(gateway, "start", 0.0),
            sensors=sensor_cfg,
        )
        if scenario.duration < 0 or scenario.channel_delay < 0:
            raise ScenarioError("'duration' and channel 'delay' must be >= 0")
        if scenario.gateway in sensor_cfg.names():
            raise ScenarioError(f"gateway name collides with a sensor: {scenario.gateway}")
        return scenario

    @classmethod
    def from_yaml(cls, filepath: Union[str, Path]) -> "Scenario":
        p = Path(filepath)
        if not p.exists():
            raise FileNotFoundError(f"Scenario YAML not found: {filepath}")
        with open(p, "r", encoding="utf-8") as fh:
            try:
                data = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise ScenarioError(f"invalid YAML in {filepath}: {exc}") from exc
        return cls.from_dict(data)

    def build(self) -> SimulationEngine:
        """Create an engine with the gateway receiver and all sensors installed.

        Each sensor gets its own `random.Random` seeded from the scenario seed,
        so a given seed always yields the same readings.
        """
        engine = SimulationEngine(channel_delay=self.channel_delay)
        master = random.Random(self.seed)

        gateway = engine.add_node(self.gateway)
        engine.install(Receiver(engine.channel, name=self.gateway), gateway, start_time=self.gateway_start)

        cfg = self.sensors
        for name in cfg.names():
            node = engine.add_node(name)
            measurement = Measurement(cfg.measurement.label, cfg.measurement.low, cfg.measurement.high, rng=random.Random(master.getrandbits(64)))
            app = PeriodicTransmitter(engine.channel, self.gateway, interval=cfg.interval, payload_factory=measurement, name=name)
            engine.install(app, node, start_time=cfg.start, stop_time=cfg.stop)

        _logger.info("scenario %s: %d sensor(s) -> %s", self.name, cfg.count, self.gateway)
        return engine

    def run(self, until: Optional[float] = None) -> Receiver:
        """Build, run to `until` (defaults to `duration`), tear down, return the gateway."""
        engine = self.build()
        engine.run(until=self.duration if until is None else until)
        engine.destroy()
        return engine.applications[0]
