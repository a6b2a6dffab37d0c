"""
Unit tests for Mode Manager module.

Tests mode transitions, controller enable signals, setpoint snapshots,
latch resets and mode-gated effort routing.
"""

import logging
import pytest
from unittest.mock import Mock

from rovpilot.control.mode_manager import (
    ModeManager, ModeSnapshot, EffortSource, EFFORT_ROUTES
)
from rovpilot.control.state import VehicleMode, VehicleState, EffortVector

from conftest import yaw_quaternion


class TestVehicleMode:
    """Tests for VehicleMode enumeration."""

    def test_all_modes_defined(self):
        """All expected modes should be defined."""
        assert VehicleMode.DISARMED is not None
        assert VehicleMode.MANUAL is not None
        assert VehicleMode.STABILIZE is not None
        assert VehicleMode.DEPTH_HOLD is not None

    def test_startup_mode_disarmed(self):
        """A fresh state should start disarmed."""
        assert VehicleState().mode == VehicleMode.DISARMED


class TestSetModeDepthHold:
    """Tests for entering and leaving DEPTH_HOLD."""

    def test_enables_both_controllers(self, mode_manager, outputs):
        """Depth hold should enable the depth and yaw controllers."""
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 2.5)

        assert outputs.last("depth_pid_enable") is True
        assert outputs.last("yaw_pid_enable") is True

    def test_sets_and_publishes_depth_setpoint(self, mode_manager, state, outputs):
        """Supplied depth should become the setpoint and be published."""
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 2.5)

        assert state.setpoints.depth == 2.5
        assert outputs.published("depth_setpoint") == [2.5]

    def test_default_depth_setpoint(self, mode_manager, state):
        """Depth setpoint should default to 0.0."""
        state.setpoints.depth = 4.0
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD)

        assert state.setpoints.depth == 0.0

    def test_clears_depth_latch(self, mode_manager, state):
        """Entering depth hold should clear the depth trim latch."""
        state.latches.depth = True
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)

        assert state.latches.depth is False

    def test_leaving_disables_depth_controller(self, mode_manager, outputs):
        """Leaving depth hold should disable the depth controller."""
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)
        mode_manager.set_mode(VehicleMode.STABILIZE)

        assert outputs.last("depth_pid_enable") is False
        assert outputs.last("yaw_pid_enable") is True

    def test_depth_setpoint_kept_after_leaving(self, mode_manager, state):
        """Setpoints are stale outside their mode, not erased."""
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 3.0)
        mode_manager.set_mode(VehicleMode.MANUAL)

        assert state.setpoints.depth == 3.0


class TestSetModeStabilize:
    """Tests for entering and leaving STABILIZE."""

    def test_yaw_setpoint_snapshots_sensed_yaw(self, mode_manager, state, outputs):
        """Yaw setpoint should be the sensed yaw at entry."""
        state.sensors.update_orientation(*yaw_quaternion(0.75))
        state.setpoints.yaw = -2.0

        mode_manager.set_mode(VehicleMode.STABILIZE)

        assert state.setpoints.yaw == pytest.approx(0.75)
        assert outputs.last("yaw_setpoint") == pytest.approx(0.75)

    def test_reentry_takes_new_snapshot(self, mode_manager, state):
        """Re-entering should use the current yaw, not the previous setpoint."""
        state.sensors.update_orientation(*yaw_quaternion(0.2))
        mode_manager.set_mode(VehicleMode.STABILIZE)
        mode_manager.set_mode(VehicleMode.MANUAL)

        state.sensors.update_orientation(*yaw_quaternion(-1.0))
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)

        assert state.setpoints.yaw == pytest.approx(-1.0)

    def test_stabilize_disables_depth_controller(self, mode_manager, outputs):
        """Stabilize holds yaw only."""
        mode_manager.set_mode(VehicleMode.STABILIZE)

        assert outputs.last("yaw_pid_enable") is True
        assert outputs.last("depth_pid_enable") is False
        assert outputs.published("depth_setpoint") == []

    def test_clears_yaw_latch(self, mode_manager, state):
        state.latches.yaw = True
        mode_manager.set_mode(VehicleMode.STABILIZE)

        assert state.latches.yaw is False

    def test_manual_disables_yaw_controller(self, mode_manager, outputs):
        mode_manager.set_mode(VehicleMode.STABILIZE)
        mode_manager.set_mode(VehicleMode.MANUAL)

        assert outputs.last("yaw_pid_enable") is False
        assert outputs.last("depth_pid_enable") is False

    def test_tilt_and_lights_latches_survive(self, mode_manager, state):
        """Mode changes should not touch the tilt and lights latches."""
        state.latches.tilt = True
        state.latches.lights = True

        mode_manager.set_mode(VehicleMode.STABILIZE)
        mode_manager.set_mode(VehicleMode.DISARMED)

        assert state.latches.tilt is True
        assert state.latches.lights is True


class TestSetModeDisarmed:
    """Tests for entering DISARMED."""

    @pytest.mark.parametrize("prior", [
        VehicleMode.MANUAL, VehicleMode.STABILIZE, VehicleMode.DEPTH_HOLD, VehicleMode.DISARMED
    ])
    def test_disarm_zeroes_efforts(self, mode_manager, state, prior):
        """Disarm from any mode should zero all four efforts."""
        mode_manager.set_mode(prior, 1.0)
        state.efforts.forward = 0.9
        state.efforts.strafe = -0.4
        state.efforts.yaw = 0.3
        state.efforts.vertical = -1.0

        mode_manager.set_mode(VehicleMode.DISARMED)

        assert state.mode == VehicleMode.DISARMED
        assert state.efforts == EffortVector()

    def test_disarm_disables_controllers(self, mode_manager, outputs):
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)
        mode_manager.set_mode(VehicleMode.DISARMED)

        assert outputs.last("yaw_pid_enable") is False
        assert outputs.last("depth_pid_enable") is False

    def test_manual_keeps_efforts(self, mode_manager, state):
        """Only DISARMED zeroes efforts."""
        mode_manager.set_mode(VehicleMode.MANUAL)
        state.efforts.forward = 0.5
        mode_manager.set_mode(VehicleMode.STABILIZE)

        assert state.efforts.forward == 0.5


class TestLogging:
    """Tests for mode change logging."""

    def test_transition_logged_at_info(self, mode_manager, caplog):
        with caplog.at_level(logging.INFO, logger="rovpilot.control.mode_manager"):
            mode_manager.set_mode(VehicleMode.MANUAL)

        assert any("DISARMED → MANUAL" in r.message and r.levelno == logging.INFO
                   for r in caplog.records)

    def test_self_transition_not_logged_at_info(self, mode_manager, caplog):
        """Repeated disarm from a held button should not flood the log."""
        with caplog.at_level(logging.INFO, logger="rovpilot.control.mode_manager"):
            for _ in range(5):
                mode_manager.set_mode(VehicleMode.DISARMED)

        assert [r for r in caplog.records if r.levelno >= logging.INFO] == []


class TestCallbacks:
    """Tests for mode change listeners."""

    def test_callback_receives_snapshot(self, mode_manager, state):
        """Listeners should get the new mode and setpoints."""
        callback = Mock()
        mode_manager.add_callback(callback)
        state.sensors.update_orientation(*yaw_quaternion(0.4))

        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 2.0)

        callback.assert_called_once()
        snapshot = callback.call_args[0][0]
        assert isinstance(snapshot, ModeSnapshot)
        assert snapshot.mode == VehicleMode.DEPTH_HOLD
        assert snapshot.previous_mode == VehicleMode.DISARMED
        assert snapshot.depth_setpoint == 2.0
        assert snapshot.yaw_setpoint == pytest.approx(0.4)

    def test_callback_error_does_not_propagate(self, mode_manager, state):
        """A failing listener should not abort the transition."""
        mode_manager.add_callback(Mock(side_effect=RuntimeError("boom")))
        second = Mock()
        mode_manager.add_callback(second)

        mode_manager.set_mode(VehicleMode.MANUAL)

        assert state.mode == VehicleMode.MANUAL
        second.assert_called_once()


class TestEffortRouting:
    """Tests for mode-gated effort routing."""

    def test_routes_table_covers_controllers(self):
        assert (EffortSource.YAW_CONTROLLER, 'yaw') in EFFORT_ROUTES
        assert (EffortSource.DEPTH_CONTROLLER, 'vertical') in EFFORT_ROUTES

    def test_yaw_controller_ignored_in_manual(self, mode_manager, state):
        mode_manager.set_mode(VehicleMode.MANUAL)

        assert mode_manager.apply_effort(EffortSource.YAW_CONTROLLER, 'yaw', 0.5) is False
        assert state.efforts.yaw == 0.0

    @pytest.mark.parametrize("mode", [VehicleMode.STABILIZE, VehicleMode.DEPTH_HOLD])
    def test_yaw_controller_applied_in_hold_modes(self, mode_manager, state, mode):
        mode_manager.set_mode(mode, 1.0)

        assert mode_manager.apply_effort(EffortSource.YAW_CONTROLLER, 'yaw', 0.5) is True
        assert state.efforts.yaw == 0.5

    def test_depth_controller_only_in_depth_hold(self, mode_manager, state):
        mode_manager.set_mode(VehicleMode.STABILIZE)
        assert mode_manager.apply_effort(EffortSource.DEPTH_CONTROLLER, 'vertical', 0.3) is False

        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)
        assert mode_manager.apply_effort(EffortSource.DEPTH_CONTROLLER, 'vertical', 0.3) is True
        assert state.efforts.vertical == 0.3

    def test_joystick_yaw_only_in_manual(self, mode_manager):
        mode_manager.set_mode(VehicleMode.MANUAL)
        assert mode_manager.accepts(EffortSource.JOYSTICK, 'yaw') is True

        mode_manager.set_mode(VehicleMode.STABILIZE)
        assert mode_manager.accepts(EffortSource.JOYSTICK, 'yaw') is False

    def test_joystick_vertical_manual_and_stabilize(self, mode_manager):
        mode_manager.set_mode(VehicleMode.STABILIZE)
        assert mode_manager.accepts(EffortSource.JOYSTICK, 'vertical') is True

        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)
        assert mode_manager.accepts(EffortSource.JOYSTICK, 'vertical') is False

    def test_nothing_accepted_when_disarmed(self, mode_manager):
        for source, axis in EFFORT_ROUTES:
            assert mode_manager.accepts(source, axis) is False

    def test_unknown_route_rejected(self, mode_manager):
        """A producer never writes an axis it has no route for."""
        mode_manager.set_mode(VehicleMode.DEPTH_HOLD, 1.0)

        assert mode_manager.accepts(EffortSource.DEPTH_CONTROLLER, 'forward') is False


class TestProperties:
    """Tests for ModeManager properties."""

    def test_is_armed(self, mode_manager):
        assert mode_manager.is_armed is False

        mode_manager.set_mode(VehicleMode.MANUAL)
        assert mode_manager.is_armed is True

    def test_mode_duration(self, mode_manager):
        mode_manager.set_mode(VehicleMode.MANUAL)

        assert mode_manager.mode_duration_s >= 0.0
