"""
Vehicle Outputs
===============

Outbound side of the control core. Every externally visible effect of the
core goes through a VehicleOutputs instance:

    thrusters           6 efforts in [-1, 1], fixed channel order (every tick)
    camera_tilt         tilt in [-1, 1] (on change)
    lights              brightness in [0, 1] (on change)
    yaw_pid_enable      bool (on every mode transition)
    depth_pid_enable    bool (on every mode transition)
    yaw_state           sensed yaw (every tick in STABILIZE / DEPTH_HOLD)
    yaw_setpoint        target yaw (on change)
    depth_state         sensed depth (every tick in DEPTH_HOLD)
    depth_setpoint      target depth (on change)
    odometry            Odometry estimate (every tick)

The base class only logs and counts messages. A transport adapter (ROS
publishers, a socket bridge, ...) subclasses it and overrides _publish.
Methods are called while RovBase holds its state lock, so implementations
must not block.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from .telemetry.odometry import Odometry

logger = logging.getLogger(__name__)


class VehicleOutputs:
    """
    Logging output sink.

    Subclasses override _publish(topic, value) to forward messages.
    """

    def __init__(self):
        self._counts: Dict[str, int] = {}

    def thrusters(self, efforts: Sequence[float]):
        self._emit("thrusters", list(efforts))

    def camera_tilt(self, tilt: float):
        self._emit("camera_tilt", tilt)

    def lights(self, brightness: float):
        self._emit("lights", brightness)

    def yaw_pid_enable(self, enabled: bool):
        self._emit("yaw_pid_enable", enabled)

    def depth_pid_enable(self, enabled: bool):
        self._emit("depth_pid_enable", enabled)

    def yaw_state(self, yaw: float):
        self._emit("yaw_state", yaw)

    def yaw_setpoint(self, yaw: float):
        self._emit("yaw_setpoint", yaw)

    def depth_state(self, depth: float):
        self._emit("depth_state", depth)

    def depth_setpoint(self, depth: float):
        self._emit("depth_setpoint", depth)

    def odometry(self, odom: Odometry):
        self._emit("odometry", odom)

    def _emit(self, topic: str, value: Any):
        self._counts[topic] = self._counts.get(topic, 0) + 1
        self._publish(topic, value)

    def _publish(self, topic: str, value: Any):
        """Forward a message. The base implementation only logs it."""
        logger.debug(f"{topic}: {value}")

    @property
    def stats(self) -> dict:
        """Messages sent per topic."""
        return dict(self._counts)


class MockVehicleOutputs(VehicleOutputs):
    """Output sink that records every message, for tests and dry runs."""

    def __init__(self):
        super().__init__()
        self.messages: List[Tuple[str, Any]] = []

    def _publish(self, topic: str, value: Any):
        self.messages.append((topic, value))

    def published(self, topic: str) -> List[Any]:
        """All values sent on a topic, oldest first."""
        return [value for t, value in self.messages if t == topic]

    def last(self, topic: str) -> Optional[Any]:
        """Most recent value sent on a topic, or None."""
        values = self.published(topic)
        return values[-1] if values else None

    def clear(self):
        """Forget recorded messages."""
        self.messages.clear()
