"""Tests for emitter shapes, wind and the particle engine."""
import logging
import math

import numpy as np
import pytest

from particle_baker.core.curves import Curve, RangeValue
from particle_baker.core.settings import (
    EffectSettings,
    EmissionMode,
    EmissionType,
    EmitterShape,
    SpawnAngleMode,
    WindSettings,
)
from particle_baker.simulation.engine import EmitterPhase, ParticleEngine
from particle_baker.simulation.particle import Particle
from particle_baker.simulation.shapes import spawn_offset
from particle_baker.simulation.wind import (
    apply_wind_force,
    compute_area_weight,
    normalize_direction,
    resolve_direction,
)

from conftest import make_emitter


def run(engine: ParticleEngine, steps: int, dt: float) -> None:
    for _ in range(steps):
        engine.update(dt)


# --- Shapes ---

class TestSpawnOffset:
    """Test spawn position sampling per emitter shape."""

    def test_point_spawns_at_emitter(self):
        rng = np.random.default_rng(0)
        assert spawn_offset(make_emitter(shape=EmitterShape.POINT), rng) == (0.0, 0.0)

    def test_unknown_shape_spawns_at_emitter(self):
        rng = np.random.default_rng(0)
        assert spawn_offset(make_emitter(shape="hexagon"), rng) == (0.0, 0.0)

    def test_line_follows_emitter_angle(self):
        em = make_emitter(shape=EmitterShape.LINE, angle=0.0, line_length=100.0)
        rng = np.random.default_rng(2)
        for _ in range(100):
            x, y = spawn_offset(em, rng)
            assert abs(x) <= 50.0
            assert y == pytest.approx(0.0)

    def test_circle_area_within_radius(self):
        em = make_emitter(shape=EmitterShape.CIRCLE, shape_radius=20.0)
        rng = np.random.default_rng(3)
        for _ in range(100):
            x, y = spawn_offset(em, rng)
            assert math.hypot(x, y) <= 20.0 + 1e-9

    def test_circle_edge_within_band(self):
        em = make_emitter(shape=EmitterShape.CIRCLE, emission_mode=EmissionMode.EDGE,
                          shape_radius=50.0, circle_thickness=10.0)
        rng = np.random.default_rng(4)
        for _ in range(100):
            r = math.hypot(*spawn_offset(em, rng))
            assert 45.0 - 1e-9 <= r <= 55.0 + 1e-9

    def test_rectangle_area_within_bounds(self):
        em = make_emitter(shape=EmitterShape.RECTANGLE, shape_width=100.0, shape_height=40.0)
        rng = np.random.default_rng(5)
        for _ in range(100):
            x, y = spawn_offset(em, rng)
            assert abs(x) <= 50.0 + 1e-9
            assert abs(y) <= 20.0 + 1e-9

    def test_rectangle_edge_near_outline(self):
        em = make_emitter(shape=EmitterShape.RECTANGLE, emission_mode=EmissionMode.EDGE,
                          shape_width=100.0, shape_height=40.0, rectangle_thickness=4.0)
        rng = np.random.default_rng(6)
        for _ in range(200):
            x, y = spawn_offset(em, rng)
            on_side = abs(abs(x) - 50.0) <= 2.0 + 1e-9
            on_top_bottom = abs(abs(y) - 20.0) <= 2.0 + 1e-9
            assert on_side or on_top_bottom

    def test_rounded_rect_edge_within_expanded_bounds(self):
        em = make_emitter(shape=EmitterShape.ROUNDED_RECT, emission_mode=EmissionMode.EDGE,
                          shape_width=100.0, shape_height=60.0, round_radius=15.0,
                          rectangle_thickness=6.0)
        rng = np.random.default_rng(7)
        for _ in range(200):
            x, y = spawn_offset(em, rng)
            assert abs(x) <= 53.0 + 1e-9
            assert abs(y) <= 33.0 + 1e-9


# --- Wind ---

class TestWind:
    """Test wind direction, area weighting and force integration."""

    def test_zero_vector_falls_back_to_positive_x(self):
        assert normalize_direction((0.0, 0.0)) == (1.0, 0.0)

    def test_vector_direction_is_normalized(self):
        wind = WindSettings(direction_mode='vector', direction_vector=(0.0, 5.0))
        dx, dy = resolve_direction(wind)
        assert dx == pytest.approx(0.0, abs=1e-9)
        assert dy == pytest.approx(1.0)

    def test_global_area_weight(self):
        assert compute_area_weight(WindSettings(), 1000.0, -1000.0) == 1.0

    def test_rect_area_weight(self):
        wind = WindSettings(area_shape='rect', area_rect_size=(200.0, 200.0))
        assert compute_area_weight(wind, 50.0, 0.0) == 1.0
        assert compute_area_weight(wind, 150.0, 0.0) == 0.0

    def test_rect_falloff(self):
        wind = WindSettings(area_shape='rect', area_rect_size=(200.0, 200.0), falloff=0.5)
        assert compute_area_weight(wind, 75.0, 0.0) == pytest.approx(0.5)
        assert compute_area_weight(wind, 25.0, 0.0) == 1.0

    def test_circle_falloff(self):
        wind = WindSettings(area_shape='circle', area_circle_radius=100.0, falloff=0.5)
        assert compute_area_weight(wind, 0.0, 75.0) == pytest.approx(0.5)
        assert compute_area_weight(wind, 0.0, 101.0) == 0.0

    def test_disabled_wind_is_noop(self):
        particle = Particle(id=0, emitter_id="emitter_1", vx=3.0, vy=4.0)
        apply_wind_force(particle, WindSettings(enabled=False, strength=100.0), 0.0, 1.0)
        assert (particle.vx, particle.vy) == (3.0, 4.0)

    def test_enabled_wind_accelerates(self):
        particle = Particle(id=0, emitter_id="emitter_1")
        apply_wind_force(particle, WindSettings(enabled=True, strength=10.0), 0.0, 0.5)
        assert particle.vx == pytest.approx(5.0)
        assert particle.vy == pytest.approx(0.0, abs=1e-9)


# --- Engine ---

class TestEngineEmission:
    """Test emission state machines."""

    def test_single_burst_spawns_once_then_expires(self, burst_settings):
        engine = ParticleEngine(burst_settings, rng=np.random.default_rng(0))
        engine.update(1 / 30)
        assert engine.particle_count() == 5

        run(engine, 5, 1 / 30)
        assert engine.particle_count() == 5

        run(engine, 20, 1 / 30)
        assert engine.particle_count() == 0

    def test_looping_burst_refires(self):
        settings = EffectSettings(
            emitters=[make_emitter(emission_type=EmissionType.BURST, burst_count=3,
                                   burst_interval=0.5, looping=True)],
            duration=1.0,
        )
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        engine.update(0.1)
        assert engine.particle_count() == 3
        run(engine, 10, 0.1)
        assert engine.particle_count() > 3

    def test_zero_rate_never_spawns(self):
        settings = EffectSettings(emitters=[make_emitter(rate=0.0)], duration=1.0)
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        run(engine, 60, 1 / 30)
        assert engine.particle_count() == 0

    def test_continuous_rate(self, continuous_settings):
        engine = ParticleEngine(continuous_settings, rng=np.random.default_rng(0))
        run(engine, 10, 0.1)
        assert engine.particle_count() == 10

    def test_non_looping_stops_after_duration(self, continuous_settings):
        engine = ParticleEngine(continuous_settings, rng=np.random.default_rng(0))
        run(engine, 30, 0.1)
        assert engine.particle_count() == 10
        assert engine.emitter_phase("emitter_1") == EmitterPhase.FINISHED

    def test_max_particles_cap(self):
        settings = EffectSettings(emitters=[make_emitter(rate=1000.0, max_particles=7)], duration=1.0)
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        run(engine, 30, 1 / 30)
        assert engine.particle_count("emitter_1") == 7
        assert len(engine.particles) == 7

    def test_start_delay(self):
        settings = EffectSettings(emitters=[make_emitter(rate=10.0, start_delay=1.0)], duration=2.0)
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        run(engine, 5, 0.1)
        assert engine.particle_count() == 0
        assert engine.emitter_phase("emitter_1") == EmitterPhase.IDLE

    def test_duration_window(self):
        settings = EffectSettings(
            emitters=[make_emitter(emission_type=EmissionType.DURATION, rate=10.0,
                                   duration_start=0.5, duration_end=0.8, looping=False)],
            duration=2.0,
        )
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        run(engine, 4, 0.1)
        assert engine.particle_count() == 0
        run(engine, 16, 0.1)
        assert 2 <= engine.particle_count() <= 4

    def test_disabled_emitter_never_spawns(self):
        settings = EffectSettings(emitters=[make_emitter(rate=50.0, enabled=False)])
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        run(engine, 30, 1 / 30)
        assert engine.particle_count() == 0

    def test_unknown_emission_type_warns_once(self, caplog):
        settings = EffectSettings(emitters=[make_emitter(emission_type="sparkle")])
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        with caplog.at_level(logging.WARNING, logger="particle_baker"):
            run(engine, 10, 1 / 30)
        assert engine.particle_count() == 0
        warnings = [r for r in caplog.records if "unknown emission type" in r.getMessage()]
        assert len(warnings) == 1


class TestEngineParticles:
    """Test per-particle integration and spawn sampling."""

    def test_life_decreases(self, continuous_settings):
        engine = ParticleEngine(continuous_settings, rng=np.random.default_rng(0))
        engine.update(0.1)
        particle = engine.particles[0]
        before = particle.life
        engine.update(0.1)
        assert particle.life == pytest.approx(before - 0.1)
        assert 0.0 < particle.normalized_age < 1.0

    def test_gravity_pulls_down(self):
        settings = EffectSettings(emitters=[make_emitter(rate=10.0, gravity_range=RangeValue(100.0, 100.0))])
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        engine.update(0.1)
        particle = engine.particles[0]
        run(engine, 5, 0.1)
        assert particle.vy > 0
        assert particle.y > 0

    def test_specific_spawn_angle(self):
        settings = EffectSettings(emitters=[make_emitter(
            rate=10.0, spawn_angle_mode=SpawnAngleMode.SPECIFIC, spawn_angle=45.0,
        )])
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        particle = engine.spawn_particle("emitter_1")
        assert particle.rotation == pytest.approx(math.radians(45.0))

    def test_spin_is_degrees_per_second(self):
        settings = EffectSettings(emitters=[make_emitter(
            rate=10.0,
            spawn_angle_mode=SpawnAngleMode.SPECIFIC,
            spawn_angle=0.0,
            spin_range=RangeValue(90.0, 90.0),
            spin_over_lifetime=Curve.constant(1.0),
        )])
        engine = ParticleEngine(settings, rng=np.random.default_rng(0))
        engine.update(0.1)
        assert engine.particles[0].rotation == pytest.approx(math.radians(9.0))

    def test_color_follows_gradient(self, continuous_settings):
        engine = ParticleEngine(continuous_settings, rng=np.random.default_rng(0))
        engine.update(0.1)
        particle = engine.particles[0]
        assert particle.color == (255, 255, 255)
        assert particle.alpha < 1.0

    def test_seeded_engines_match(self, looping_prewarm_settings):
        a = ParticleEngine(looping_prewarm_settings, rng=np.random.default_rng(11))
        b = ParticleEngine(looping_prewarm_settings, rng=np.random.default_rng(11))
        run(a, 20, 1 / 30)
        run(b, 20, 1 / 30)
        assert [(p.x, p.y, p.life) for p in a.particles] == [(p.x, p.y, p.life) for p in b.particles]

    def test_reset_prewarms_looping_emitters(self, looping_prewarm_settings):
        engine = ParticleEngine(looping_prewarm_settings, rng=np.random.default_rng(0))
        engine.reset()
        assert engine.time == 0.0
        assert engine.particle_count() > 0
        assert engine.state("emitter_1").has_prewarmed

    def test_settings_not_mutated(self, looping_prewarm_settings):
        before = looping_prewarm_settings.to_dict()
        engine = ParticleEngine(looping_prewarm_settings, rng=np.random.default_rng(0))
        run(engine, 60, 1 / 30)
        assert looping_prewarm_settings.to_dict() == before
