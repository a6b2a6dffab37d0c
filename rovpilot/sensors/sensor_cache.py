"""
Sensor State Cache
==================

Holds the latest depth and yaw readings delivered by the external
barometer and IMU drivers. Readings arrive asynchronously and are read
by the mode manager (yaw snapshot on mode entry), the input mapper
(depth-hold target) and the periodic tick (state publication, odometry).

Orientation arrives as a quaternion; only yaw is kept. Roll and pitch are
discarded because the vehicle is assumed passively stable in both.

There is no staleness handling here. If a driver stops sending, the last
value is used indefinitely; receive timestamps are kept so that an
external watchdog can decide when to disarm.

This cache has no lock of its own - it is part of the state bundle guarded
by RovBase.
"""

import math
import time
from dataclasses import dataclass
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass
class SensorState:
    """Latest sensed vehicle state."""
    depth: float = 0.0              # Depth reported by the barometer (m)
    yaw: float = 0.0                # Yaw from the IMU (rad, -pi to pi)

    # Receive times (0.0 until the first reading)
    depth_timestamp: float = 0.0
    yaw_timestamp: float = 0.0


def quaternion_to_euler(x: float, y: float, z: float, w: float) -> Tuple[float, float, float]:
    """
    Decompose a quaternion into roll, pitch and yaw.

    Args:
        x, y, z, w: Quaternion components (w is the scalar part)

    Returns:
        (roll, pitch, yaw) in radians
    """
    # Roll (x-axis rotation)
    sinr_cosp = 2.0 * (w * x + y * z)
    cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
    roll = math.atan2(sinr_cosp, cosr_cosp)

    # Pitch (y-axis rotation)
    sinp = 2.0 * (w * y - z * x)
    if abs(sinp) >= 1.0:
        pitch = math.copysign(math.pi / 2, sinp)
    else:
        pitch = math.asin(sinp)

    # Yaw (z-axis rotation)
    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    yaw = math.atan2(siny_cosp, cosy_cosp)

    return roll, pitch, yaw


class SensorCache:
    """
    Latest depth and yaw readings.

    Written only by the sensor callbacks, read-only to everything else.
    """

    def __init__(self):
        self._state = SensorState()

    def update_depth(self, depth: float, timestamp: Optional[float] = None):
        """Store a new depth reading."""
        if self._state.depth_timestamp == 0.0:
            logger.info(f"First depth reading: {depth:.2f}m")
        self._state.depth = depth
        self._state.depth_timestamp = timestamp if timestamp is not None else time.time()

    def update_orientation(self, x: float, y: float, z: float, w: float,
                           timestamp: Optional[float] = None):
        """Store yaw extracted from a new orientation quaternion."""
        _, _, yaw = quaternion_to_euler(x, y, z, w)
        if self._state.yaw_timestamp == 0.0:
            logger.info(f"First orientation reading: yaw={math.degrees(yaw):.1f}°")
        self._state.yaw = yaw
        self._state.yaw_timestamp = timestamp if timestamp is not None else time.time()

    @property
    def depth(self) -> float:
        return self._state.depth

    @property
    def yaw(self) -> float:
        return self._state.yaw

    def get_state(self) -> SensorState:
        """Get a copy of the cached readings."""
        return SensorState(
            depth=self._state.depth,
            yaw=self._state.yaw,
            depth_timestamp=self._state.depth_timestamp,
            yaw_timestamp=self._state.yaw_timestamp
        )

    def age_s(self, now: Optional[float] = None) -> Tuple[float, float]:
        """
        Age of the cached readings, for an external watchdog.

        Returns:
            (depth_age, yaw_age) in seconds, inf if never received
        """
        now = now if now is not None else time.time()
        depth_age = now - self._state.depth_timestamp if self._state.depth_timestamp > 0 else float('inf')
        yaw_age = now - self._state.yaw_timestamp if self._state.yaw_timestamp > 0 else float('inf')
        return depth_age, yaw_age
