"""Shared fixtures for particle_baker tests."""
import pytest

from particle_baker.core.curves import RangeValue
from particle_baker.core.settings import EffectSettings, EmissionType, EmitterConfig
from particle_baker.export.baking import BakedFrame, ParticleSnapshot, make_particle_key


def make_emitter(**overrides) -> EmitterConfig:
    """Emitter with long-lived, motionless particles unless overridden."""
    params = dict(
        id="emitter_1",
        name="Emitter 1",
        life_time_min=10.0,
        life_time_max=10.0,
        initial_speed_range=RangeValue(0.0, 0.0),
    )
    params.update(overrides)
    return EmitterConfig(**params)


def make_snapshot(local_id: int = 0, emitter_id: str = "emitter_1", **overrides) -> ParticleSnapshot:
    params = dict(
        emitter_id=emitter_id,
        local_id=local_id,
        x=0.0,
        y=0.0,
        rotation=0.0,
        scale=1.0,
        scale_x=1.0,
        scale_y=1.0,
        alpha=1.0,
        r=255,
        g=255,
        b=255,
        life=1.0,
        max_life=1.0,
    )
    params.update(overrides)
    return ParticleSnapshot(**params)


def make_frames(snapshots, dt: float = 0.1, emitter_id: str = "emitter_1", local_id: int = 0):
    """One frame per entry; None leaves the particle out of that frame."""
    key = make_particle_key(emitter_id, local_id)
    frames = []
    for i, snap in enumerate(snapshots):
        particles = {key: snap} if snap is not None else {}
        frames.append(BakedFrame(round(i * dt, 6), particles))
    return frames


@pytest.fixture
def continuous_settings():
    """Single non-looping continuous emitter, one second at 30 fps."""
    return EffectSettings(
        emitters=[make_emitter(rate=10.0, looping=False)],
        duration=1.0,
        fps=30,
    )


@pytest.fixture
def looping_prewarm_settings():
    """Looping continuous emitter with prewarm and a fading color."""
    return EffectSettings(
        emitters=[make_emitter(
            rate=10.0,
            looping=True,
            prewarm=True,
            life_time_min=0.5,
            life_time_max=0.8,
            initial_speed_range=RangeValue(50.0, 100.0),
        )],
        duration=1.0,
        fps=30,
    )


@pytest.fixture
def burst_settings():
    return EffectSettings(
        emitters=[make_emitter(
            emission_type=EmissionType.BURST,
            burst_count=5,
            burst_cycles=1,
            looping=False,
            life_time_min=0.5,
            life_time_max=0.5,
        )],
        duration=1.0,
        fps=30,
    )
