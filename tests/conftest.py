"""
Shared test fixtures for rovpilot unit tests.
"""

import math
import pytest

from rovpilot.control.input_mapper import InputMapper, JoySample, JoystickLayout
from rovpilot.control.mode_manager import ModeManager
from rovpilot.control.state import VehicleMode, VehicleState
from rovpilot.outputs import MockVehicleOutputs
from rovpilot.vehicle import RovBase

NUM_AXES = 8
NUM_BUTTONS = 11


def yaw_quaternion(yaw: float):
    """Quaternion (x, y, z, w) for a pure rotation about z."""
    return (0.0, 0.0, math.sin(yaw / 2), math.cos(yaw / 2))


@pytest.fixture
def joy():
    """
    Factory for gamepad samples using the default layout.

    Usage: joy('arm', 'tilt_up', forward=0.8, yaw_trim=1.0)
    """
    layout = JoystickLayout()

    def _make(*buttons, **axes):
        axis_values = [0.0] * NUM_AXES
        for name, value in axes.items():
            axis_values[getattr(layout, f"axis_{name}")] = value
        button_values = [False] * NUM_BUTTONS
        for name in buttons:
            button_values[getattr(layout, f"button_{name}")] = True
        return JoySample(axes=axis_values, buttons=button_values)

    return _make


@pytest.fixture
def outputs():
    """Recording output sink."""
    return MockVehicleOutputs()


@pytest.fixture
def state():
    """Fresh vehicle state (DISARMED)."""
    return VehicleState()


@pytest.fixture
def mode_manager(state, outputs):
    """Mode manager over a fresh state."""
    return ModeManager(state, outputs)


@pytest.fixture
def input_mapper(state, mode_manager, outputs):
    """Input mapper with default layout, trims and thresholds."""
    return InputMapper(state, mode_manager, outputs)


@pytest.fixture
def armed_mapper(input_mapper, joy, outputs):
    """Input mapper already armed into MANUAL, with recorded messages cleared."""
    input_mapper.process(joy('arm'))
    outputs.clear()
    return input_mapper


@pytest.fixture
def rov(outputs):
    """Control core with a recording sink."""
    return RovBase(outputs=outputs)


@pytest.fixture
def armed_rov(rov, joy, outputs):
    """Control core armed into MANUAL, with recorded messages cleared."""
    rov.on_joy(joy('arm'))
    assert rov.mode == VehicleMode.MANUAL
    outputs.clear()
    return rov
