"""Exception types raised by the simulation core.

Every error derives from `SensorNetError`. Most also mix in a builtin type so
callers that only care about e.g. bad arguments can keep catching `ValueError`.
"""


class SensorNetError(Exception):
    """Base class for all sensornet errors."""


class InvalidDelay(SensorNetError, ValueError):
    """Raised when an event is scheduled with a negative delay."""


class SendError(SensorNetError):
    """Raised by a channel endpoint that cannot accept a payload.

    `destination` is the address the payload was meant for (may be None when
    the failure is not destination-specific, e.g. a closed endpoint).
    """

    def __init__(self, message: str, destination=None):
        super().__init__(message)
        self.destination = destination


class LifecycleError(SensorNetError, RuntimeError):
    """Raised on an invalid application lifecycle request."""


class ScenarioError(SensorNetError, ValueError):
    """Raised when a scenario configuration is malformed."""
