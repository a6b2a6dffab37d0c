"""
Input Mapper
============

Turns gamepad samples into mode changes, setpoint trims, camera/lights
trims and manual efforts.

Each sample is processed in a fixed order, later steps depend on the mode
chosen earlier in the same sample:

    1. Disarm (returns immediately) / arm
    2. Disarmed: ignore the rest of the sample
    3. Mode select, priority manual > stabilize > depth hold > surface,
       once per press
    4. Yaw trim        (STABILIZE, DEPTH_HOLD)
    5. Depth trim      (DEPTH_HOLD)
    6. Camera tilt     (any armed mode)
    7. Lights          (any armed mode)
    8. Thruster axes, dead-banded

Trim, tilt and lights are edge-triggered: one increment per press, no
matter how many samples the press spans.

Default layout is an Xbox-style controller:

    Axes                                Buttons
    0  yaw, 1.0 is left                 0  A       manual
    1  forward, 1.0 is forward          1  B       surface
    3  strafe, 1.0 is left              2  X       stabilize
    4  vertical, 1.0 is ascend          3  Y       depth hold
    6  yaw trim (d-pad left/right)      4  LB      camera tilt down
    7  depth trim (d-pad up/down)       5  RB      camera tilt up
                                        6  View    disarm
                                        7  Menu    arm
                                        9  LS      lights brighter
                                        10 RS      lights dimmer
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from .deadband import dead_band, clamp
from .mode_manager import ModeManager, EffortSource
from .state import VehicleMode, VehicleState, YAW_HOLD_MODES, DEPTH_HOLD_MODES
from ..outputs import VehicleOutputs

logger = logging.getLogger(__name__)


@dataclass
class JoystickLayout:
    """Axis and button indices of each control."""
    # Axes
    axis_yaw: int = 0
    axis_forward: int = 1
    axis_strafe: int = 3
    axis_vertical: int = 4
    axis_yaw_trim: int = 6          # Acts like 2 buttons; 1.0 left, -1.0 right
    axis_vertical_trim: int = 7     # Acts like 2 buttons; 1.0 up, -1.0 down

    # Buttons
    button_manual: int = 0
    button_surface: int = 1
    button_stabilize: int = 2
    button_depth_hold: int = 3
    button_tilt_down: int = 4
    button_tilt_up: int = 5
    button_disarm: int = 6
    button_arm: int = 7
    button_lights_bright: int = 9
    button_lights_dim: int = 10


@dataclass
class TrimConfig:
    """Increment applied per trim press."""
    yaw_step: float = math.pi / 36     # rad (5°)
    depth_step: float = 0.1            # m
    tilt_step: float = 0.2             # tilt range is -1.0 to 1.0
    lights_step: float = 0.2           # brightness range is 0.0 to 1.0


@dataclass
class JoySample:
    """One gamepad reading."""
    axes: List[float] = field(default_factory=list)
    buttons: List[bool] = field(default_factory=list)

    def axis(self, index: int) -> float:
        """Axis value, 0.0 if the device has no such axis."""
        if 0 <= index < len(self.axes):
            return float(self.axes[index])
        return 0.0

    def button(self, index: int) -> bool:
        """Button state, False if the device has no such button."""
        if 0 <= index < len(self.buttons):
            return bool(self.buttons[index])
        return False

    @classmethod
    def from_sequences(cls, axes: Sequence[float], buttons: Sequence) -> 'JoySample':
        return cls(axes=[float(a) for a in axes], buttons=[bool(b) for b in buttons])


class InputMapper:
    """
    Maps gamepad samples onto the vehicle state.

    The caller must hold the state lock while calling process().
    """

    def __init__(self,
                 state: VehicleState,
                 mode_manager: ModeManager,
                 outputs: VehicleOutputs,
                 layout: JoystickLayout = None,
                 trim: TrimConfig = None,
                 input_dead_band: float = 0.05,
                 surface_depth: float = 10.0):
        self.state = state
        self.modes = mode_manager
        self.outputs = outputs
        self.layout = layout or JoystickLayout()
        self.trim = trim or TrimConfig()
        self.input_dead_band = input_dead_band
        self.surface_depth = surface_depth

        self._samples = 0
        self._held_mode_button: Optional[int] = None

    def process(self, sample: JoySample):
        """Apply one gamepad sample."""
        self._samples += 1
        layout = self.layout

        # Arm / disarm
        if sample.button(layout.button_disarm):
            if self.state.mode != VehicleMode.DISARMED:
                logger.info("Disarmed")
            self.modes.set_mode(VehicleMode.DISARMED)
            self._held_mode_button = None
            return

        if sample.button(layout.button_arm) and self.state.mode == VehicleMode.DISARMED:
            logger.info("Armed, manual")
            self.modes.set_mode(VehicleMode.MANUAL)

        # If we're disarmed, ignore everything else
        if self.state.mode == VehicleMode.DISARMED:
            return

        self._select_mode(sample)
        self._trim_yaw(sample)
        self._trim_depth(sample)
        self._trim_camera_tilt(sample)
        self._trim_lights(sample)
        self._apply_axes(sample)

    def _select_mode(self, sample: JoySample):
        """
        Highest-priority pressed mode button wins.

        A button held over several samples selects its mode once, so the
        controllers are enabled and the setpoint snapshotted once per press.
        """
        layout = self.layout

        button = None
        for candidate in (layout.button_manual, layout.button_stabilize,
                          layout.button_depth_hold, layout.button_surface):
            if sample.button(candidate):
                button = candidate
                break

        held = self._held_mode_button
        self._held_mode_button = button
        if button is None or button == held:
            return

        if button == layout.button_manual:
            self.modes.set_mode(VehicleMode.MANUAL)
        elif button == layout.button_stabilize:
            self.modes.set_mode(VehicleMode.STABILIZE)
        elif button == layout.button_depth_hold:
            self.modes.set_mode(VehicleMode.DEPTH_HOLD, self.state.sensors.depth)
        else:
            logger.info(f"Surface, target depth {self.surface_depth:.2f}m")
            self.modes.set_mode(VehicleMode.DEPTH_HOLD, self.surface_depth)

    def _rising_edge(self, latch: str, active: bool) -> bool:
        """Update a latch and report whether this sample starts a press."""
        held = getattr(self.state.latches, latch)
        setattr(self.state.latches, latch, active)
        return active and not held

    def _trim_yaw(self, sample: JoySample):
        value = dead_band(sample.axis(self.layout.axis_yaw_trim), self.input_dead_band)
        if not self._rising_edge('yaw', value != 0.0):
            return

        if self.state.mode not in YAW_HOLD_MODES:
            logger.debug(f"Yaw trim ignored in {self.state.mode.name}")
            return

        # TODO wrap the setpoint to [-pi, pi] once the yaw controller handles the discontinuity
        step = self.trim.yaw_step if value > 0 else -self.trim.yaw_step
        self.state.setpoints.yaw += step
        self.outputs.yaw_setpoint(self.state.setpoints.yaw)
        logger.info(f"Yaw setpoint trimmed to {math.degrees(self.state.setpoints.yaw):.1f}°")

    def _trim_depth(self, sample: JoySample):
        value = dead_band(sample.axis(self.layout.axis_vertical_trim), self.input_dead_band)
        if not self._rising_edge('depth', value != 0.0):
            return

        if self.state.mode not in DEPTH_HOLD_MODES:
            logger.debug(f"Depth trim ignored in {self.state.mode.name}")
            return

        step = self.trim.depth_step if value > 0 else -self.trim.depth_step
        self.state.setpoints.depth += step
        self.outputs.depth_setpoint(self.state.setpoints.depth)
        logger.info(f"Depth setpoint trimmed to {self.state.setpoints.depth:.2f}m")

    def _trim_camera_tilt(self, sample: JoySample):
        up = sample.button(self.layout.button_tilt_up)
        down = sample.button(self.layout.button_tilt_down)
        if not self._rising_edge('tilt', up or down):
            return

        actuators = self.state.actuators
        step = self.trim.tilt_step if up else -self.trim.tilt_step
        actuators.camera_tilt = clamp(actuators.camera_tilt + step, -1.0, 1.0)
        self.outputs.camera_tilt(actuators.camera_tilt)
        logger.info(f"Camera tilt {actuators.camera_tilt:.1f}")

    def _trim_lights(self, sample: JoySample):
        bright = sample.button(self.layout.button_lights_bright)
        dim = sample.button(self.layout.button_lights_dim)
        if not self._rising_edge('lights', bright or dim):
            return

        actuators = self.state.actuators
        step = self.trim.lights_step if bright else -self.trim.lights_step
        actuators.lights = clamp(actuators.lights + step, 0.0, 1.0)
        self.outputs.lights(actuators.lights)
        logger.info(f"Lights {actuators.lights:.1f}")

    def _apply_axes(self, sample: JoySample):
        """Manual efforts; axes owned by a controller in this mode are skipped."""
        layout = self.layout
        band = self.input_dead_band

        for axis, index in (('forward', layout.axis_forward),
                            ('strafe', layout.axis_strafe),
                            ('yaw', layout.axis_yaw),
                            ('vertical', layout.axis_vertical)):
            if self.modes.accepts(EffortSource.JOYSTICK, axis):
                setattr(self.state.efforts, axis, dead_band(sample.axis(index), band))

    @property
    def stats(self) -> dict:
        return {"samples": self._samples}
