"""
Particle state
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class Particle:
    """Individual particle with full physics state"""
    # Identity (id is unique only within its emitter)
    id: int
    emitter_id: str

    # Position and velocity
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0

    # Lifetime (seconds remaining / at spawn)
    life: float = 1.0
    max_life: float = 1.0

    # Rotation in radians
    rotation: float = 0.0

    # Values sampled once at spawn
    base_speed: float = 0.0
    base_spin_rate: float = 0.0              # rad/s
    base_angular_velocity: float = 0.0       # rad/s
    base_gravity: float = 0.0
    base_drag: float = 1.0
    base_noise_strength: float = 0.0
    base_noise_frequency: float = 0.0
    base_noise_speed: float = 0.0
    base_attraction: float = 0.0
    base_vortex_strength: float = 0.0
    base_speed_scale: float = 1.0
    base_weight: float = 1.0
    base_size_x: float = 1.0
    base_size_y: float = 1.0

    # Wind, fixed per particle
    wind_strength_multiplier: float = 1.0
    wind_direction_offset: float = 0.0       # radians
    wind_turbulence_offset: Tuple[float, float] = (0.0, 0.0)

    # Render state, refreshed every update
    scale: float = 1.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    r: int = 255
    g: int = 255
    b: int = 255
    alpha: float = 1.0

    @property
    def normalized_age(self) -> float:
        """Age as 0-1 fraction of lifetime"""
        if self.max_life <= 0:
            return 1.0
        return 1.0 - self.life / self.max_life

    @property
    def color(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @color.setter
    def color(self, rgb: Tuple[int, int, int]):
        self.r, self.g, self.b = rgb[0], rgb[1], rgb[2]
