"""
Vehicle State
=============

The shared, mutable state bundle of the control core: operating mode,
closed-loop setpoints, the four logical efforts, trim latches, actuator
state and the sensor cache.

Everything here is plain data. RovBase owns a single instance and guards
it with one lock; the mode manager and input mapper mutate it only while
that lock is held.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List

import numpy as np

from ..sensors.sensor_cache import SensorCache


class VehicleMode(Enum):
    """Vehicle operating modes."""
    DISARMED = auto()       # Thrusters off, only arm/disarm accepted
    MANUAL = auto()         # All four efforts from the joystick
    STABILIZE = auto()      # Yaw held by the yaw controller
    DEPTH_HOLD = auto()     # Yaw and depth held by their controllers


# Modes in which the yaw / depth controllers are enabled
YAW_HOLD_MODES = frozenset({VehicleMode.STABILIZE, VehicleMode.DEPTH_HOLD})
DEPTH_HOLD_MODES = frozenset({VehicleMode.DEPTH_HOLD})


@dataclass
class ControlSetpoints:
    """Targets consumed by the external yaw and depth controllers."""
    yaw: float = 0.0        # rad, valid in STABILIZE / DEPTH_HOLD
    depth: float = 0.0      # m, valid in DEPTH_HOLD


@dataclass
class EffortVector:
    """Logical motion efforts, each in [-1, 1]."""
    forward: float = 0.0    # 1.0 is forward
    strafe: float = 0.0     # 1.0 is left
    yaw: float = 0.0        # 1.0 is left (counter-clockwise)
    vertical: float = 0.0   # 1.0 is ascend

    AXES = ('forward', 'strafe', 'yaw', 'vertical')

    def zero(self):
        """Zero all four efforts."""
        self.forward = self.strafe = self.yaw = self.vertical = 0.0

    def as_array(self) -> np.ndarray:
        """Efforts as a column-ordered vector (forward, strafe, yaw, vertical)."""
        return np.array([self.forward, self.strafe, self.yaw, self.vertical], dtype=np.float64)

    def as_list(self) -> List[float]:
        return [self.forward, self.strafe, self.yaw, self.vertical]


@dataclass
class TrimLatches:
    """
    Held-state of each edge-triggered control.

    A latch is True while its control is held, so a sustained press
    fires exactly once. Yaw and depth latches are cleared by mode
    transitions; tilt and lights latches survive them.
    """
    yaw: bool = False
    depth: bool = False
    tilt: bool = False
    lights: bool = False


@dataclass
class ActuatorState:
    """Camera and lights outputs."""
    camera_tilt: float = 0.0    # -1.0 (down) to 1.0 (up)
    lights: float = 0.0         # 0.0 (off) to 1.0 (full)


@dataclass
class VehicleState:
    """Complete mutable state of the control core."""
    mode: VehicleMode = VehicleMode.DISARMED
    setpoints: ControlSetpoints = field(default_factory=ControlSetpoints)
    efforts: EffortVector = field(default_factory=EffortVector)
    latches: TrimLatches = field(default_factory=TrimLatches)
    actuators: ActuatorState = field(default_factory=ActuatorState)
    sensors: SensorCache = field(default_factory=SensorCache)
