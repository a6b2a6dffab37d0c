"""
Telemetry Modules
=================

Dead-reckoning estimates published alongside the thruster commands.
"""

from .odometry import (
    Odometry,
    OdometryEstimator,
    DragModelConfig,
    ODOM_COVARIANCE,
)

__all__ = [
    'Odometry',
    'OdometryEstimator',
    'DragModelConfig',
    'ODOM_COVARIANCE',
]
