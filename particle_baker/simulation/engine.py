"""
Particle Engine

Owns the live particle population for one effect and the per-emitter
emission state machines. Each bake constructs its own engine; nothing is
shared between engines.

Per update:
1. Global time advances by dt.
2. Each enabled emitter spawns according to its emission type.
3. Every live particle ages, has its lifetime curves sampled, and
   integrates forces (wind, gravity, noise, attraction, vortex, drag).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from ..core.curves import clamp01, evaluate_color_gradient, evaluate_curve, sample_range
from ..core.noise import noise_2d
from ..core.settings import (
    EffectSettings,
    EmissionType,
    EmitterConfig,
    EmitterShape,
    SpawnAngleMode,
    enum_value,
)
from .particle import Particle
from .shapes import spawn_offset
from .wind import apply_wind_force


logger = logging.getLogger(__name__)

PREWARM_DT = 1.0 / 60.0
VORTEX_RADIAL_FACTOR = 0.3
VORTEX_FALLOFF = 0.001


# =============================================================================
# Emitter State
# =============================================================================

class EmitterPhase(Enum):
    """Where an emitter is in its timeline"""
    IDLE = auto()        # before start delay
    ACTIVE = auto()
    FINISHED = auto()    # non-looping, past its duration


@dataclass
class EmitterState:
    """Mutable per-emitter counters, one per emitter per run"""
    spawn_accumulator: float = 0.0
    burst_cycle_index: int = 0
    last_burst_time: float = 0.0
    has_prewarmed: bool = False
    next_particle_id: int = 0
    # Start of the current loop cycle, relative to the start delay
    cycle_start: float = 0.0


# =============================================================================
# Engine
# =============================================================================

class ParticleEngine:
    """
    Simulates every emitter of an effect.

    Args:
        settings: Effect to simulate. Never modified.
        rng: Random source for spawn sampling. Defaults to an unseeded
            numpy Generator.
    """

    def __init__(self, settings: EffectSettings, rng: Optional[np.random.Generator] = None):
        self.settings = settings
        self.rng = rng if rng is not None else np.random.default_rng()
        self.particles: List[Particle] = []
        self.time = 0.0

        self._states: Dict[str, EmitterState] = {}
        self._counts: Dict[str, int] = {}
        self._warned: set = set()

        self._emitters: Dict[EmissionType, Callable[[EmitterConfig, EmitterState, float, float], None]] = {
            EmissionType.CONTINUOUS: self._emit_continuous,
            EmissionType.BURST: self._emit_burst,
            EmissionType.DURATION: self._emit_duration,
        }

        self.initialize_emitter_states()

    # -------------------------------------------------------------------------
    # State management
    # -------------------------------------------------------------------------

    def initialize_emitter_states(self) -> None:
        self._states = {em.id: EmitterState() for em in self.settings.emitters}
        self._counts = {em.id: 0 for em in self.settings.emitters}

    def state(self, emitter_id: str) -> Optional[EmitterState]:
        return self._states.get(emitter_id)

    def reset(self) -> None:
        """Clear everything, then prewarm looping emitters that ask for it"""
        self.particles = []
        self.time = 0.0
        self.initialize_emitter_states()

        for em in self.settings.emitters:
            if em.prewarm and em.looping:
                self.prewarm_emitter(em.id)

    def prewarm_emitter(self, emitter_id: str) -> None:
        """
        Run one emitter through a full duration at 60 fps without moving
        the global clock, so playback starts in steady state.
        """
        steps = math.ceil(self.settings.duration / PREWARM_DT)
        for _ in range(steps):
            self.update_emitter(emitter_id, PREWARM_DT, suppress_clock=True)
            self.update_particles(PREWARM_DT)

        state = self._states.get(emitter_id)
        if state is not None:
            state.has_prewarmed = True

    def particle_count(self, emitter_id: Optional[str] = None) -> int:
        if emitter_id is None:
            return len(self.particles)
        return self._counts.get(emitter_id, 0)

    def emitter_phase(self, emitter_id: str) -> Optional[EmitterPhase]:
        em = self.settings.get_emitter(emitter_id)
        if em is None:
            return None
        if self.time - em.start_delay < 0:
            return EmitterPhase.IDLE
        if not em.looping and self.time > em.start_delay + self.settings.duration:
            return EmitterPhase.FINISHED
        return EmitterPhase.ACTIVE

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def update(self, dt: float, suppress_clock: bool = False,
               emitter_ids: Optional[Iterable[str]] = None) -> None:
        """
        Advance the simulation.

        Args:
            dt: Step in seconds
            suppress_clock: Skip loop-cycle and end-of-duration handling
            emitter_ids: Only spawn from these emitters (all when None)
        """
        self.time += dt

        only = set(emitter_ids) if emitter_ids is not None else None
        for em in self.settings.emitters:
            if not em.enabled:
                continue
            if only is not None and em.id not in only:
                continue
            self.update_emitter(em.id, dt, suppress_clock)

        self.update_particles(dt)

    def update_emitter(self, emitter_id: str, dt: float, suppress_clock: bool = False) -> None:
        em = self.settings.get_emitter(emitter_id)
        state = self._states.get(emitter_id)
        if em is None or state is None:
            return

        duration = self.settings.duration

        if not suppress_clock:
            if em.looping:
                if duration > 0 and self.time - em.start_delay - state.cycle_start >= duration:
                    # Next loop cycle
                    while self.time - em.start_delay - state.cycle_start >= duration:
                        state.cycle_start += duration
                    state.burst_cycle_index = 0
                    state.last_burst_time = em.start_delay + state.cycle_start
            elif self.time > em.start_delay + duration:
                return

        effective_time = self.time - em.start_delay
        if effective_time < 0:
            return

        handler = self._emitters.get(em.emission_type)
        if handler is None:
            if em.id not in self._warned:
                self._warned.add(em.id)
                logger.warning(
                    "Emitter '%s' has unknown emission type '%s'; it will not spawn",
                    em.name, enum_value(em.emission_type),
                )
            return

        handler(em, state, dt, effective_time)

    def _cycle_time(self, em: EmitterConfig, state: EmitterState, effective_time: float) -> float:
        return effective_time - state.cycle_start if em.looping else effective_time

    def _effective_rate(self, em: EmitterConfig, state: EmitterState, effective_time: float) -> float:
        duration = self.settings.duration
        if duration > 0:
            normalized = clamp01(self._cycle_time(em, state, effective_time) / duration)
        else:
            normalized = 0.0
        return em.rate * max(0.0, evaluate_curve(em.rate_over_time, normalized))

    def _spawn_accumulated(self, em: EmitterConfig, state: EmitterState, dt: float, rate: float) -> None:
        if rate <= 0:
            return
        state.spawn_accumulator += dt
        interval = 1.0 / rate
        while state.spawn_accumulator >= interval and self._counts[em.id] < em.max_particles:
            self.spawn_particle(em.id)
            state.spawn_accumulator -= interval

    def _emit_continuous(self, em: EmitterConfig, state: EmitterState, dt: float, effective_time: float) -> None:
        self._spawn_accumulated(em, state, dt, self._effective_rate(em, state, effective_time))

    def _emit_burst(self, em: EmitterConfig, state: EmitterState, dt: float, effective_time: float) -> None:
        cycle_limit = math.inf if em.looping else em.burst_cycles
        if state.burst_cycle_index >= cycle_limit:
            return

        since_last = effective_time - (state.last_burst_time - em.start_delay)
        if since_last >= em.burst_interval or state.burst_cycle_index == 0:
            for _ in range(int(em.burst_count)):
                if self._counts[em.id] >= em.max_particles:
                    break
                self.spawn_particle(em.id)
            state.last_burst_time = self.time
            state.burst_cycle_index += 1

    def _emit_duration(self, em: EmitterConfig, state: EmitterState, dt: float, effective_time: float) -> None:
        local = self._cycle_time(em, state, effective_time)
        if em.duration_start <= local <= em.duration_end:
            self._spawn_accumulated(em, state, dt, self._effective_rate(em, state, effective_time))

    # -------------------------------------------------------------------------
    # Particles
    # -------------------------------------------------------------------------

    def _remove(self, index: int) -> None:
        particle = self.particles.pop(index)
        if particle.emitter_id in self._counts:
            self._counts[particle.emitter_id] -= 1

    def update_particles(self, dt: float) -> None:
        """Age and integrate every live particle"""
        for i in range(len(self.particles) - 1, -1, -1):
            p = self.particles[i]

            em = self.settings.get_emitter(p.emitter_id)
            if em is None or not em.enabled:
                self._remove(i)
                continue

            p.life -= dt
            if p.life <= 0:
                self._remove(i)
                continue

            t = 1.0 - p.life / p.max_life

            apply_wind_force(p, em.wind, self.time, dt)

            # Size
            if em.separate_size:
                mult_x = clamp01(evaluate_curve(em.size_x_over_lifetime, t))
                mult_y = clamp01(evaluate_curve(em.size_y_over_lifetime, t))
            else:
                mult_x = mult_y = clamp01(evaluate_curve(em.size_over_lifetime, t))
            p.scale_x = p.base_size_x * mult_x * em.scale_ratio_x
            p.scale_y = p.base_size_y * mult_y * em.scale_ratio_y
            p.scale = (p.scale_x + p.scale_y) / 2

            speed_mult = clamp01(evaluate_curve(em.speed_over_lifetime, t))
            weight_mult = clamp01(evaluate_curve(em.weight_over_lifetime, t))

            # Gravity
            gravity = p.base_gravity * clamp01(evaluate_curve(em.gravity_over_lifetime, t))
            p.vy += gravity * p.base_weight * weight_mult * dt

            # Noise
            noise_strength = p.base_noise_strength * clamp01(evaluate_curve(em.noise_strength_over_lifetime, t))
            if noise_strength != 0:
                nx, ny = noise_2d(
                    p.x * p.base_noise_frequency,
                    p.y * p.base_noise_frequency,
                    self.time * p.base_noise_speed,
                )
                p.vx += nx * noise_strength * dt
                p.vy += ny * noise_strength * dt

            # Attraction
            attraction = p.base_attraction * clamp01(evaluate_curve(em.attraction_over_lifetime, t))
            if attraction != 0:
                dx = em.attraction_point[0] - p.x
                dy = em.attraction_point[1] - p.y
                dist = math.hypot(dx, dy)
                if dist > 0:
                    p.vx += dx / dist * attraction * dt
                    p.vy += dy / dist * attraction * dt

            # Vortex: tangential swirl plus a weaker pull inward
            vortex = p.base_vortex_strength * clamp01(evaluate_curve(em.vortex_strength_over_lifetime, t))
            if vortex != 0:
                dx = em.vortex_point[0] - p.x
                dy = em.vortex_point[1] - p.y
                dist = math.hypot(dx, dy)
                if dist > 0:
                    ndx = dx / dist
                    ndy = dy / dist
                    falloff = 1.0 / (1.0 + dist * VORTEX_FALLOFF)
                    p.vx += -ndy * vortex * falloff * dt
                    p.vy += ndx * vortex * falloff * dt
                    p.vx += ndx * vortex * VORTEX_RADIAL_FACTOR * falloff * dt
                    p.vy += ndy * vortex * VORTEX_RADIAL_FACTOR * falloff * dt

            # Drag
            drag = p.base_drag * clamp01(evaluate_curve(em.drag_over_lifetime, t))
            p.vx *= drag
            p.vy *= drag

            speed_factor = p.base_speed_scale * speed_mult
            p.x += p.vx * speed_factor * dt
            p.y += p.vy * speed_factor * dt

            # Rotation
            p.rotation += p.base_spin_rate * clamp01(evaluate_curve(em.spin_over_lifetime, t)) * dt
            p.rotation += p.base_angular_velocity * clamp01(evaluate_curve(em.angular_velocity_over_lifetime, t)) * dt

            r, g, b, a = evaluate_color_gradient(em.color_over_lifetime, t)
            p.color = (r, g, b)
            p.alpha = a / 255.0

    def spawn_particle(self, emitter_id: str) -> Optional[Particle]:
        """Create one particle, sampling every per-particle value once"""
        em = self.settings.get_emitter(emitter_id)
        state = self._states.get(emitter_id)
        if em is None or state is None:
            return None

        rng = self.rng
        off_x, off_y = spawn_offset(em, rng)

        base_angle = em.angle + (em.line_spread_rotation if em.shape == EmitterShape.LINE else 0.0)
        angle = math.radians(base_angle + (rng.random() - 0.5) * abs(em.angle_spread))
        speed = sample_range(em.initial_speed_range, rng)

        if em.spawn_angle_mode == SpawnAngleMode.ALIGN_MOTION:
            rotation = angle
        elif em.spawn_angle_mode == SpawnAngleMode.SPECIFIC:
            rotation = math.radians(em.spawn_angle)
        elif em.spawn_angle_mode == SpawnAngleMode.RANDOM:
            rotation = rng.random() * math.pi * 2
        else:
            rotation = math.radians(
                em.spawn_angle_min + rng.random() * (em.spawn_angle_max - em.spawn_angle_min)
            )

        particle = Particle(
            id=state.next_particle_id,
            emitter_id=emitter_id,
            x=em.position[0] + off_x,
            y=em.position[1] + off_y,
            vx=math.cos(angle) * speed,
            vy=math.sin(angle) * speed,
            rotation=rotation,
            base_speed=speed,
            base_spin_rate=math.radians(sample_range(em.spin_range, rng)),
            base_angular_velocity=math.radians(sample_range(em.angular_velocity_range, rng)),
            base_gravity=sample_range(em.gravity_range, rng),
            base_drag=sample_range(em.drag_range, rng),
            base_noise_strength=sample_range(em.noise_strength_range, rng),
            base_noise_frequency=sample_range(em.noise_frequency_range, rng),
            base_noise_speed=sample_range(em.noise_speed_range, rng),
            base_attraction=sample_range(em.attraction_range, rng),
            base_vortex_strength=sample_range(em.vortex_strength_range, rng),
            base_speed_scale=sample_range(em.speed_range, rng),
            base_weight=sample_range(em.weight_range, rng),
        )
        state.next_particle_id += 1

        if em.separate_size:
            particle.base_size_x = sample_range(em.size_x_range, rng)
            particle.base_size_y = sample_range(em.size_y_range, rng)
        else:
            size = sample_range(em.size_range, rng)
            particle.base_size_x = size
            particle.base_size_y = size

        life = em.life_time_min + rng.random() * (em.life_time_max - em.life_time_min)
        particle.life = life
        particle.max_life = life

        wind = em.wind
        particle.wind_strength_multiplier = 1.0 + (rng.random() * 2 - 1) * wind.strength_randomness
        particle.wind_direction_offset = math.radians((rng.random() * 2 - 1) * wind.direction_randomness)
        particle.wind_turbulence_offset = (rng.random() * 1000, rng.random() * 1000)

        self.particles.append(particle)
        self._counts[emitter_id] = self._counts.get(emitter_id, 0) + 1
        return particle
