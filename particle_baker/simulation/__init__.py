"""
Particle Baker - Simulation
"""

from .particle import Particle
from .engine import ParticleEngine, EmitterState, EmitterPhase
from .shapes import spawn_offset
from .wind import (
    apply_wind_force, compute_wind_acceleration, compute_area_weight, resolve_direction,
)
