"""
Dead-Band Filter
================

Scalar helpers shared by the input mapper, the controller-effort
callbacks and the thruster mixer.
"""


def dead_band(value: float, band: float) -> float:
    """
    Suppress small values.

    Values whose magnitude is below ``band`` become exactly 0.0, anything
    at or above the threshold passes through unchanged (hard cutoff, no taper).

    Args:
        value: Raw input or effort
        band: Threshold magnitude

    Returns:
        0.0 or the unchanged value
    """
    if abs(value) < band:
        return 0.0
    return value


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value to [low, high]."""
    return max(low, min(high, value))
