"""
Thruster Mixer
==============

Fixed allocation from the four logical efforts to the six thrusters of a
BlueROV2-style vectored frame: four horizontal thrusters at 45° in the
corners and two vertical thrusters.

Channel order must match the order of the thrusters in the vehicle model
and must not be changed. Strafe and yaw are 1.0 for left, -1.0 for right.
Three thrusters spin cw and three ccw, which is why the vertical pair
receives opposite signs.

Saturation policy is per-channel clipping to [-1, 1]. Axes are not
renormalized or prioritized; a caller that cares about axis priority must
keep the combined magnitude within range itself.
"""

from typing import List
import logging

import numpy as np

from .state import EffortVector

logger = logging.getLogger(__name__)

THRUSTER_COUNT = 6

# Rows: thrusters. Columns: forward, strafe, yaw, vertical.
ALLOCATION_MATRIX = np.array([
    [1.0,  1.0,  1.0,  0.0],    # horizontal
    [1.0, -1.0, -1.0,  0.0],    # horizontal
    [1.0, -1.0,  1.0,  0.0],    # horizontal
    [1.0,  1.0, -1.0,  0.0],    # horizontal
    [0.0,  0.0,  0.0,  1.0],    # vertical
    [0.0,  0.0,  0.0, -1.0],    # vertical
], dtype=np.float64)


class ThrusterMixer:
    """Converts an EffortVector into thruster efforts."""

    def __init__(self, allocation: np.ndarray = ALLOCATION_MATRIX):
        allocation = np.asarray(allocation, dtype=np.float64)
        if allocation.shape != (THRUSTER_COUNT, 4):
            raise ValueError(f"Allocation matrix must be {THRUSTER_COUNT}x4, got {allocation.shape}")
        self.allocation = allocation
        self._saturated_count = 0

    def mix(self, efforts: EffortVector) -> List[float]:
        """
        Mix efforts into thruster commands.

        Args:
            efforts: Forward, strafe, yaw and vertical efforts

        Returns:
            THRUSTER_COUNT efforts, each clipped to [-1, 1]
        """
        raw = self.allocation @ efforts.as_array()
        clipped = np.clip(raw, -1.0, 1.0)

        if np.any(raw != clipped):
            self._saturated_count += 1
            logger.debug(f"Thruster saturation: {np.round(raw, 3).tolist()}")

        return [float(v) for v in clipped]

    @property
    def stats(self) -> dict:
        return {"saturated_count": self._saturated_count}
