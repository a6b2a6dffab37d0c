"""
Mode Manager Module
===================

Owns the vehicle operating mode and the setpoints of the closed-loop modes.

Transitions:
    DISARMED  <- disarm, from any mode (all efforts zeroed)
    MANUAL    <- arm (from DISARMED) or manual button
    STABILIZE <- stabilize button; yaw held at the yaw sensed on entry
    DEPTH_HOLD <- depth-hold / surface buttons; yaw and depth held

The external yaw and depth controllers are enabled and disabled on mode
edges rather than polled, so each controller sees exactly one enable per
activation and resets its integrator once.

Which producer may write which effort axis also depends on the mode, see
EFFORT_ROUTES.
"""

import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, FrozenSet, Optional, Tuple
import logging

from .state import (
    VehicleMode,
    VehicleState,
    YAW_HOLD_MODES,
    DEPTH_HOLD_MODES,
)
from ..outputs import VehicleOutputs

logger = logging.getLogger(__name__)


class EffortSource(Enum):
    """Producers that write into the effort vector."""
    JOYSTICK = auto()
    YAW_CONTROLLER = auto()
    DEPTH_CONTROLLER = auto()


_ARMED = frozenset({VehicleMode.MANUAL, VehicleMode.STABILIZE, VehicleMode.DEPTH_HOLD})

# (producer, axis) -> modes in which that producer owns the axis
EFFORT_ROUTES: Dict[Tuple[EffortSource, str], FrozenSet[VehicleMode]] = {
    (EffortSource.JOYSTICK, 'forward'): _ARMED,
    (EffortSource.JOYSTICK, 'strafe'): _ARMED,
    (EffortSource.JOYSTICK, 'yaw'): frozenset({VehicleMode.MANUAL}),
    (EffortSource.JOYSTICK, 'vertical'): frozenset({VehicleMode.MANUAL, VehicleMode.STABILIZE}),
    (EffortSource.YAW_CONTROLLER, 'yaw'): YAW_HOLD_MODES,
    (EffortSource.DEPTH_CONTROLLER, 'vertical'): DEPTH_HOLD_MODES,
}


@dataclass
class ModeSnapshot:
    """Mode and setpoints right after a transition, passed to listeners."""
    mode: VehicleMode = VehicleMode.DISARMED
    previous_mode: VehicleMode = VehicleMode.DISARMED
    yaw_setpoint: float = 0.0
    depth_setpoint: float = 0.0
    mode_start_time: float = 0.0


class ModeManager:
    """
    Vehicle mode state machine.

    Operates on a VehicleState owned by RovBase; the caller must hold the
    state lock for every call.
    """

    def __init__(self, state: VehicleState, outputs: VehicleOutputs):
        self.state = state
        self.outputs = outputs
        self._mode_start_time = time.time()
        self._callbacks: list[Callable[[ModeSnapshot], None]] = []

    def set_mode(self, mode: VehicleMode, depth_setpoint: float = 0.0):
        """
        Change operating mode.

        Args:
            mode: Target mode
            depth_setpoint: Target depth when entering DEPTH_HOLD (m)
        """
        state = self.state
        old_mode = state.mode
        state.mode = mode
        self._mode_start_time = time.time()

        if mode in DEPTH_HOLD_MODES:
            self.outputs.depth_pid_enable(True)
            state.setpoints.depth = depth_setpoint
            self.outputs.depth_setpoint(state.setpoints.depth)
            state.latches.depth = False
        else:
            self.outputs.depth_pid_enable(False)
            if old_mode in DEPTH_HOLD_MODES:
                state.latches.depth = False

        if mode in YAW_HOLD_MODES:
            self.outputs.yaw_pid_enable(True)
            # Hold the heading we have now, not the last target
            state.setpoints.yaw = state.sensors.yaw
            self.outputs.yaw_setpoint(state.setpoints.yaw)
            state.latches.yaw = False
        else:
            self.outputs.yaw_pid_enable(False)
            if old_mode in YAW_HOLD_MODES:
                state.latches.yaw = False

        if mode == VehicleMode.DISARMED:
            state.efforts.zero()

        logger.log(
            logging.INFO if mode != old_mode else logging.DEBUG,
            f"Mode change: {old_mode.name} → {mode.name}, "
            f"yaw_setpoint={state.setpoints.yaw:.3f}, depth_setpoint={state.setpoints.depth:.2f}"
        )

        snapshot = self.get_snapshot(previous_mode=old_mode)
        for callback in self._callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.warning(f"Mode callback error: {e}")

    def accepts(self, source: EffortSource, axis: str) -> bool:
        """Check whether source may write axis in the current mode."""
        modes = EFFORT_ROUTES.get((source, axis))
        return modes is not None and self.state.mode in modes

    def apply_effort(self, source: EffortSource, axis: str, value: float) -> bool:
        """
        Route an effort update to the effort vector.

        Updates from a producer that does not own the axis in the current
        mode are dropped.

        Returns:
            True if the effort was written
        """
        if not self.accepts(source, axis):
            logger.debug(f"Ignoring {source.name} {axis} effort in {self.state.mode.name}")
            return False
        setattr(self.state.efforts, axis, value)
        return True

    def add_callback(self, callback: Callable[[ModeSnapshot], None]):
        """Register callback for mode changes."""
        self._callbacks.append(callback)

    def get_snapshot(self, previous_mode: Optional[VehicleMode] = None) -> ModeSnapshot:
        """Get current mode and setpoints."""
        return ModeSnapshot(
            mode=self.state.mode,
            previous_mode=previous_mode if previous_mode is not None else self.state.mode,
            yaw_setpoint=self.state.setpoints.yaw,
            depth_setpoint=self.state.setpoints.depth,
            mode_start_time=self._mode_start_time
        )

    @property
    def mode(self) -> VehicleMode:
        return self.state.mode

    @property
    def is_armed(self) -> bool:
        """Check if thrusters may be driven."""
        return self.state.mode != VehicleMode.DISARMED

    @property
    def mode_duration_s(self) -> float:
        """Time spent in the current mode."""
        return time.time() - self._mode_start_time
