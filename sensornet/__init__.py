"""sensornet package entry point"""

__all__ = [
	"Scheduler", "Event", "EventHandle", "Node", "Channel", "Endpoint", "Delivery",
	"Application", "AppState", "PeriodicTransmitter", "Measurement", "parse_measurement",
	"Receiver", "SimulationEngine", "Scenario",
	"SensorNetError", "InvalidDelay", "SendError", "LifecycleError", "ScenarioError",
]

from .errors import SensorNetError, InvalidDelay, SendError, LifecycleError, ScenarioError
from .event import Event, EventHandle
from .scheduler import Scheduler
from .node import Node
from .channel import Channel, Endpoint, Delivery
from .application import Application, AppState
from .transmitter import PeriodicTransmitter, Measurement, parse_measurement
from .receiver import Receiver
from .engine import SimulationEngine
from .scenario import Scenario

__version__ = "0.1.0"
