"""
Wind Force

Directional wind acting on particles inside an optional area volume, with
a soft falloff toward the area boundary and optional noise turbulence.
Per-particle randomness (strength multiplier, direction offset and
turbulence phase) is fixed at spawn and stored on the particle.
"""

import math
from typing import Tuple

from ..core.curves import clamp01
from ..core.noise import noise_2d
from ..core.settings import WindSettings
from .particle import Particle


Vec2 = Tuple[float, float]


def normalize_direction(vector: Vec2) -> Vec2:
    """Unit vector, or +X when the input is (nearly) zero"""
    mag = math.hypot(vector[0], vector[1])
    if mag < 1e-5:
        return (1.0, 0.0)
    return (vector[0] / mag, vector[1] / mag)


def resolve_direction(wind: WindSettings, offset_rad: float = 0.0) -> Vec2:
    """Wind direction with a per-particle angular offset applied"""
    if wind.direction_mode == 'vector':
        base = normalize_direction(wind.direction_vector)
    else:
        rad = math.radians(wind.direction_angle)
        base = (math.cos(rad), math.sin(rad))

    angle = math.atan2(base[1], base[0]) + offset_rad
    return (math.cos(angle), math.sin(angle))


def _falloff_weight(edge_ratio: float, falloff: float) -> float:
    if falloff <= 0:
        return 1.0
    threshold = 1.0 - falloff
    if edge_ratio <= threshold:
        return 1.0
    return clamp01(1.0 - (edge_ratio - threshold) / falloff)


def compute_area_weight(wind: WindSettings, x: float, y: float) -> float:
    """
    How strongly the wind acts at a position.

    Returns:
        1.0 for global wind and inside the core of the area, fading
        linearly to 0.0 across the falloff band, and 0.0 outside.
    """
    if wind.area_shape == 'global':
        return 1.0

    if wind.area_shape == 'rect':
        half_w = wind.area_rect_size[0] / 2
        half_h = wind.area_rect_size[1] / 2
        dx = abs(x - wind.area_rect_center[0])
        dy = abs(y - wind.area_rect_center[1])
        if dx > half_w or dy > half_h:
            return 0.0
        edge_ratio = max(dx / half_w if half_w > 0 else 0.0,
                         dy / half_h if half_h > 0 else 0.0)
        return _falloff_weight(edge_ratio, wind.falloff)

    radius = wind.area_circle_radius
    dist = math.hypot(x - wind.area_circle_center[0], y - wind.area_circle_center[1])
    if dist > radius:
        return 0.0
    edge_ratio = dist / radius if radius > 0 else 0.0
    return _falloff_weight(edge_ratio, wind.falloff)


def compute_wind_acceleration(particle: Particle, wind: WindSettings, time: float) -> Vec2:
    """Instantaneous wind acceleration for one particle"""
    weight = compute_area_weight(wind, particle.x, particle.y)
    if weight <= 0:
        return (0.0, 0.0)

    direction = resolve_direction(wind, particle.wind_direction_offset)
    strength = wind.strength * particle.wind_strength_multiplier * weight
    ax = direction[0] * strength
    ay = direction[1] * strength

    if wind.turbulence_enabled and wind.turbulence_strength != 0:
        off_x, off_y = particle.wind_turbulence_offset
        nx, ny = noise_2d(
            (particle.x + off_x) * wind.turbulence_scale,
            (particle.y + off_y) * wind.turbulence_scale,
            time * wind.turbulence_frequency,
        )
        turbulence = wind.turbulence_strength * weight
        ax += nx * turbulence
        ay += ny * turbulence

    return (ax, ay)


def apply_wind_force(particle: Particle, wind: WindSettings, time: float, dt: float) -> None:
    """Integrate wind into the particle velocity (no-op when disabled)"""
    if wind is None or not wind.enabled:
        return
    ax, ay = compute_wind_acceleration(particle, wind, time)
    particle.vx += ax * dt
    particle.vy += ay * dt
