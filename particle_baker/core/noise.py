"""
Noise Field

Cheap hashed-sine noise used for per-particle turbulence and wind gusts.
Deterministic: the same (x, y, time) always gives the same vector.
"""

import math
from typing import Tuple


MAX_NOISE_STRENGTH = 2.0


def simple_noise(x: float, y: float) -> float:
    """Hashed sine noise, returns value in [0, 1)"""
    n = math.sin(x * 12.9898 + y * 78.233) * 43758.5453
    return n - math.floor(n)


def noise_2d(x: float, y: float, time: float) -> Tuple[float, float]:
    """
    2D noise force vector.

    Combines a coarse swirl that re-rolls three times per second, cubed
    spikes for sudden gusts, and a slow flicker that wobbles the direction.

    Args:
        x: Sample x (already scaled by frequency)
        y: Sample y (already scaled by frequency)
        time: Animated time coordinate

    Returns:
        (fx, fy) with magnitude in [0.35, 2.0]
    """
    stepped = math.floor(time * 3)

    coarse = simple_noise(x * 1.37 + stepped * 11.17, y * 1.37 - stepped * 7.41)
    spikes = simple_noise(x * 4.11 + time * 6.73, y * 4.11 - time * 5.29) ** 3
    flicker = (simple_noise(x * 0.63 + stepped * 3.19, y * 0.63 - stepped * 2.71) * 2 - 1) * 0.35

    base_angle = (coarse * 2 - 1) * math.pi + flicker * math.pi
    pulse = abs(math.sin((time + coarse) * 6)) * 0.35
    strength = min(MAX_NOISE_STRENGTH, 0.35 + spikes * 1.4 + pulse + abs(flicker))

    return (math.cos(base_angle) * strength, math.sin(base_angle) * strength)
