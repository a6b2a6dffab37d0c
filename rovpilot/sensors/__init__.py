"""
Sensor Modules
==============

Cached sensor readings consumed by the control core. The sensor drivers
themselves live outside this package and push readings in through
RovBase.on_depth / RovBase.on_orientation.
"""

from .sensor_cache import (
    SensorCache,
    SensorState,
    quaternion_to_euler,
)

__all__ = [
    'SensorCache',
    'SensorState',
    'quaternion_to_euler',
]
