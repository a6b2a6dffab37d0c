"""
Control System Modules
======================

Control core of the vehicle.

Components:
    - ModeManager: Operating mode state machine and closed-loop setpoints
    - InputMapper: Gamepad samples to modes, trims and manual efforts
    - ThrusterMixer: Logical efforts to six thruster commands
    - VehicleState: Shared state bundle (mode, setpoints, efforts, latches)
"""

from .deadband import dead_band, clamp

from .state import (
    VehicleMode,
    VehicleState,
    ControlSetpoints,
    EffortVector,
    TrimLatches,
    ActuatorState,
)

from .mode_manager import (
    ModeManager,
    ModeSnapshot,
    EffortSource,
    EFFORT_ROUTES,
)

from .input_mapper import (
    InputMapper,
    JoySample,
    JoystickLayout,
    TrimConfig,
)

from .mixer import (
    ThrusterMixer,
    ALLOCATION_MATRIX,
    THRUSTER_COUNT,
)

__all__ = [
    'dead_band',
    'clamp',
    'VehicleMode',
    'VehicleState',
    'ControlSetpoints',
    'EffortVector',
    'TrimLatches',
    'ActuatorState',
    'ModeManager',
    'ModeSnapshot',
    'EffortSource',
    'EFFORT_ROUTES',
    'InputMapper',
    'JoySample',
    'JoystickLayout',
    'TrimConfig',
    'ThrusterMixer',
    'ALLOCATION_MATRIX',
    'THRUSTER_COUNT',
]
