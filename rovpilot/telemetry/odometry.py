"""
Odometry Estimator
==================

Naive odometry from thrust effort and depth.

Drag equation (The ROV Manual, Christ and Wernli, pp82-84):

    drag = 1/2 * sigma * area * velocity^2 * drag_coefficient

    sigma = density of seawater / gravitational accel = 1035 / 9.8 = 105.6
    area = cross-sectional area facing the direction of motion
    drag_coefficient = 0.9 for the ROV

Simplifying assumptions:
    - thrust force ~= max bollard thrust * effort
    - no acceleration term, so thrust == drag (quasi-static)
    - same cross-sectional area forward and lateral, constant during rotation
    - tether drag ignored

Each estimate is computed from scratch; nothing is integrated or smoothed.
Planar position, orientation, vertical and angular velocity are not
estimated and stay zero. Depth comes straight from the barometer.
"""

import math
import sys
import time
from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
import logging

import numpy as np

if TYPE_CHECKING:
    from ..control.state import EffortVector

logger = logging.getLogger(__name__)

# Roll and pitch are assumed fixed, so their variance is maximal.
# TODO covariance for depth might also need to be maximal
_MAX = sys.float_info.max
ODOM_COVARIANCE = np.array([
    [1e-5, 1e-5, 1e-5, 0.0,  0.0,  1e-5],
    [1e-5, 1e-5, 1e-5, 0.0,  0.0,  1e-5],
    [1e-5, 1e-5, 1e-5, 0.0,  0.0,  1e-5],
    [0.0,  0.0,  0.0,  _MAX, 0.0,  0.0],
    [0.0,  0.0,  0.0,  0.0,  _MAX, 0.0],
    [1e-5, 1e-5, 1e-5, 0.0,  0.0,  1e-5],
], dtype=np.float64)


@dataclass
class DragModelConfig:
    """Hydrodynamic constants (BlueROV2 with T200 thrusters)."""
    sigma: float = 105.6            # Seawater density / g
    rov_area: float = 0.0859        # Cross-sectional area (m²)
    rov_drag_coef: float = 0.9
    max_thrust_xy: float = 14.0     # Forward and lateral bollard thrust (N)


@dataclass
class Odometry:
    """Odometry estimate, laid out like nav_msgs/Odometry."""
    stamp: float = 0.0
    frame_id: str = "odom"
    child_frame_id: str = "base_link"

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0, 1.0]))  # x, y, z, w
    linear_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    pose_covariance: np.ndarray = field(default_factory=lambda: ODOM_COVARIANCE.copy())
    twist_covariance: np.ndarray = field(default_factory=lambda: ODOM_COVARIANCE.copy())

    def to_dict(self) -> dict:
        """Convert to dictionary for logging or JSON serialization."""
        return {
            "stamp": self.stamp,
            "frame_id": self.frame_id,
            "child_frame_id": self.child_frame_id,
            "position": self.position.tolist(),
            "orientation": self.orientation.tolist(),
            "linear_velocity": self.linear_velocity.tolist(),
            "angular_velocity": self.angular_velocity.tolist(),
        }


class OdometryEstimator:
    """Quasi-static drag-balance velocity estimator."""

    def __init__(self, config: Optional[DragModelConfig] = None):
        self.config = config or DragModelConfig()

    def velocity_from_effort(self, effort: float) -> float:
        """
        Steady-state speed for a thrust effort.

        Args:
            effort: Normalized thrust effort [-1, 1]

        Returns:
            Velocity (m/s), same sign as effort
        """
        cfg = self.config
        thrust = cfg.max_thrust_xy * effort
        if thrust == 0.0:
            return 0.0
        speed = math.sqrt(abs(thrust) * 2 / cfg.sigma / cfg.rov_area / cfg.rov_drag_coef)
        return math.copysign(speed, thrust)

    def estimate(self, efforts: 'EffortVector', depth: float,
                 stamp: Optional[float] = None) -> Odometry:
        """
        Build an odometry estimate.

        Args:
            efforts: Current logical efforts
            depth: Sensed depth (m)
            stamp: Message time, defaults to now

        Returns:
            Odometry with position.z, linear velocity x (strafe) and y (forward)
        """
        odom = Odometry(stamp=stamp if stamp is not None else time.time())

        # TODO calc yaw and depth velocity
        odom.linear_velocity[0] = self.velocity_from_effort(efforts.strafe)
        odom.linear_velocity[1] = self.velocity_from_effort(efforts.forward)
        odom.position[2] = depth

        return odom
