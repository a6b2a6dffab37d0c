"""
rovpilot
========

Supervisory control core of a teleoperated underwater vehicle: operating
modes, gamepad mapping, thruster mixing and drag-model odometry.
"""

from .vehicle import RovBase, RovConfig, ControlConfig
from .control_loop import ControlLoop, ControlLoopConfig
from .outputs import VehicleOutputs, MockVehicleOutputs
from .control.state import VehicleMode
from .control.input_mapper import JoySample

__version__ = "0.1.0"

__all__ = [
    'RovBase',
    'RovConfig',
    'ControlConfig',
    'ControlLoop',
    'ControlLoopConfig',
    'VehicleOutputs',
    'MockVehicleOutputs',
    'VehicleMode',
    'JoySample',
]
