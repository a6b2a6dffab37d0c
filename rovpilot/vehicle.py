"""
Vehicle Control Core
====================

RovBase is the single owner of the control state. Sensor drivers, the
gamepad driver and the external yaw/depth controllers push data in through
its on_* callbacks; a fixed-rate scheduler (ControlLoop) calls tick().

All callbacks and tick() run under one lock, so a tick never sees a mode
paired with setpoints or enable signals from the previous mode. Critical
sections are short and never wait on I/O; the output sink and mode
listeners are called with the lock held and must not block or call back
into RovBase.

Stale inputs are not detected here. If a driver stops sending, the last
value is used until a new one arrives; disarming on lost input is the job
of an external watchdog (see SensorCache.age_s).
"""

import json
import threading
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Callable, List, Optional, Union
import logging

from .control.deadband import dead_band
from .control.input_mapper import InputMapper, JoySample, JoystickLayout, TrimConfig
from .control.mixer import ThrusterMixer, THRUSTER_COUNT
from .control.mode_manager import ModeManager, ModeSnapshot, EffortSource
from .control.state import EffortVector, VehicleMode, VehicleState, YAW_HOLD_MODES, DEPTH_HOLD_MODES
from .control_loop import ControlLoopConfig
from .outputs import VehicleOutputs
from .telemetry.odometry import DragModelConfig, Odometry, OdometryEstimator

logger = logging.getLogger(__name__)


@dataclass
class ControlConfig:
    """Thresholds and constants of the control law."""
    input_dead_band: float = 0.05   # Don't respond to tiny joystick movements
    effort_dead_band: float = 0.01  # Don't apply tiny controller efforts
    surface_depth: float = 10.0     # Depth-hold target of the surface button (m)


@dataclass
class RovConfig:
    """Complete control core configuration."""
    control: ControlConfig = field(default_factory=ControlConfig)
    joystick: JoystickLayout = field(default_factory=JoystickLayout)
    trim: TrimConfig = field(default_factory=TrimConfig)
    drag: DragModelConfig = field(default_factory=DragModelConfig)
    loop: ControlLoopConfig = field(default_factory=ControlLoopConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'RovConfig':
        """
        Create from dictionary.

        Sections and keys not present keep their defaults.

        Raises:
            ValueError: Not an object, or unknown section or key
        """
        if not isinstance(data, dict):
            raise ValueError(f"Config must be an object, got {type(data).__name__}")
        sections = {f.name: f for f in fields(cls)}
        kwargs = {}
        for name, values in data.items():
            if name not in sections:
                raise ValueError(f"Unknown config section: {name}")
            if not isinstance(values, dict):
                raise ValueError(f"Config section '{name}' must be an object")
            section_cls = sections[name].default_factory
            known = {f.name for f in fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ValueError(f"Unknown keys in config section '{name}': {sorted(unknown)}")
            kwargs[name] = section_cls(**values)
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'RovConfig':
        """Load configuration from a JSON file."""
        with open(path) as f:
            data = json.load(f)
        logger.info(f"Loaded config from {path}")
        return cls.from_dict(data)

    def save(self, path: Union[str, Path]):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved config to {path}")


class RovBase:
    """
    Supervisory control core of the vehicle.

    Inbound:
        on_depth, on_orientation, on_joy,
        on_yaw_control_effort, on_depth_control_effort, set_mode

    Outbound (through VehicleOutputs):
        thrusters, odometry, yaw/depth state on every tick;
        setpoints, controller enables, camera tilt and lights on change
    """

    def __init__(self, config: Optional[RovConfig] = None,
                 outputs: Optional[VehicleOutputs] = None):
        self.config = config or RovConfig()
        self.outputs = outputs or VehicleOutputs()

        self._lock = threading.Lock()
        self._state = VehicleState()

        control = self.config.control
        self._modes = ModeManager(self._state, self.outputs)
        self._input = InputMapper(
            self._state,
            self._modes,
            self.outputs,
            layout=self.config.joystick,
            trim=self.config.trim,
            input_dead_band=control.input_dead_band,
            surface_depth=control.surface_depth
        )
        self._mixer = ThrusterMixer()
        self._odometry = OdometryEstimator(self.config.drag)

        # Statistics
        self._tick_count = 0
        self._last_thrusters: List[float] = [0.0] * THRUSTER_COUNT
        self._last_odometry: Optional[Odometry] = None

    # ----- Sensor callbacks -----

    def on_depth(self, depth: float, timestamp: Optional[float] = None):
        """New depth reading from the barometer."""
        with self._lock:
            self._state.sensors.update_depth(depth, timestamp)

    def on_orientation(self, x: float, y: float, z: float, w: float,
                       timestamp: Optional[float] = None):
        """New orientation quaternion from the IMU."""
        with self._lock:
            self._state.sensors.update_orientation(x, y, z, w, timestamp)

    # ----- Operator input -----

    def on_joy(self, sample: JoySample):
        """New gamepad sample."""
        with self._lock:
            self._input.process(sample)

    def set_mode(self, mode: VehicleMode, depth_setpoint: float = 0.0):
        """Change mode directly, bypassing the gamepad."""
        with self._lock:
            self._modes.set_mode(mode, depth_setpoint)

    # ----- Closed-loop controller feedback -----

    def on_yaw_control_effort(self, value: float):
        """Output of the yaw controller, used in STABILIZE and DEPTH_HOLD."""
        with self._lock:
            self._modes.apply_effort(
                EffortSource.YAW_CONTROLLER, 'yaw',
                dead_band(value, self.config.control.effort_dead_band)
            )

    def on_depth_control_effort(self, value: float):
        """Output of the depth controller, used in DEPTH_HOLD."""
        with self._lock:
            self._modes.apply_effort(
                EffortSource.DEPTH_CONTROLLER, 'vertical',
                dead_band(value, self.config.control.effort_dead_band)
            )

    # ----- Periodic publisher -----

    def tick(self) -> List[float]:
        """
        Publish state, thruster efforts and odometry.

        Called by the scheduler at the configured rate.

        Returns:
            Thruster efforts sent this tick
        """
        with self._lock:
            state = self._state

            # Feed the controllers with current state
            if state.mode in YAW_HOLD_MODES:
                self.outputs.yaw_state(state.sensors.yaw)
            if state.mode in DEPTH_HOLD_MODES:
                self.outputs.depth_state(state.sensors.depth)

            thrusters = self._mixer.mix(state.efforts)
            self.outputs.thrusters(thrusters)

            odom = self._odometry.estimate(state.efforts, state.sensors.depth)
            self.outputs.odometry(odom)

            self._tick_count += 1
            self._last_thrusters = thrusters
            self._last_odometry = odom

        return thrusters

    # ----- Accessors -----

    def add_mode_callback(self, callback: Callable[[ModeSnapshot], None]):
        """Register callback for mode changes. Called with the state lock held."""
        with self._lock:
            self._modes.add_callback(callback)

    @property
    def mode(self) -> VehicleMode:
        with self._lock:
            return self._state.mode

    @property
    def last_odometry(self) -> Optional[Odometry]:
        with self._lock:
            return self._last_odometry

    @property
    def status(self) -> dict:
        """Get a consistent snapshot of the control state."""
        with self._lock:
            state = self._state
            return {
                "mode": state.mode.name,
                "yaw_setpoint": state.setpoints.yaw,
                "depth_setpoint": state.setpoints.depth,
                "efforts": dict(zip(EffortVector.AXES, state.efforts.as_list())),
                "yaw": state.sensors.yaw,
                "depth": state.sensors.depth,
                "camera_tilt": state.actuators.camera_tilt,
                "lights": state.actuators.lights,
                "thrusters": list(self._last_thrusters),
                "tick_count": self._tick_count,
                "joy_samples": self._input.stats["samples"],
                "saturated_count": self._mixer.stats["saturated_count"],
            }
