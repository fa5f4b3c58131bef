"""
Baking - fixed-step simulation captured as per-frame snapshots

Runs a fresh engine at 1/fps and records every particle each frame. Looping
effects get two extra treatments so playback loops without pops:

- a prewarm pass whose frames are merged into the start and the tail of the
  main timeline;
- an extra max-lifetime of simulation past the end, whose particles are
  wrapped back onto the start of the timeline.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, NamedTuple, Optional

import numpy as np

from ..core.settings import EffectSettings
from ..simulation.engine import ParticleEngine


logger = logging.getLogger(__name__)


class ParticleKey(NamedTuple):
    """Identity of a particle across the whole effect"""
    emitter_id: str
    local_id: int


def make_particle_key(emitter_id: str, particle_id: int) -> ParticleKey:
    return ParticleKey(emitter_id, particle_id)


@dataclass(frozen=True)
class ParticleSnapshot:
    """Particle state at one frame, position relative to its emitter"""
    emitter_id: str
    local_id: int
    x: float
    y: float
    rotation: float          # degrees
    scale: float
    scale_x: float
    scale_y: float
    alpha: float             # 0-1
    r: int
    g: int
    b: int
    life: float
    max_life: float

    @property
    def color(self):
        return (self.r, self.g, self.b)


@dataclass
class BakedFrame:
    time: float
    particles: Dict[ParticleKey, ParticleSnapshot] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.particles)


@dataclass
class BakeResult:
    frames: List[BakedFrame]
    prewarm_frames: List[BakedFrame] = field(default_factory=list)

    @property
    def particle_keys(self) -> set:
        keys = set()
        for frame in self.frames:
            keys.update(frame.particles.keys())
        return keys


def capture_snapshot(engine: ParticleEngine) -> Dict[ParticleKey, ParticleSnapshot]:
    """Snapshot every live particle of the engine"""
    snapshot = {}
    for p in engine.particles:
        emitter = engine.settings.get_emitter(p.emitter_id)
        if emitter is None:
            continue
        snapshot[make_particle_key(p.emitter_id, p.id)] = ParticleSnapshot(
            emitter_id=p.emitter_id,
            local_id=p.id,
            x=p.x - emitter.position[0],
            y=p.y - emitter.position[1],
            rotation=math.degrees(p.rotation),
            scale=p.scale,
            scale_x=p.scale_x,
            scale_y=p.scale_y,
            alpha=p.alpha,
            r=p.r,
            g=p.g,
            b=p.b,
            life=p.life,
            max_life=p.max_life,
        )
    return snapshot


def merge_loop_frames(
    snapshots: List[Dict[ParticleKey, ParticleSnapshot]],
    prewarm_frames: List[BakedFrame],
    frame_count: int,
    dt: float,
    looping: bool,
) -> List[BakedFrame]:
    """
    Build the main timeline from raw snapshots.

    For looping effects, particles missing from a main frame are filled in
    from the prewarm pass (at the start and at the tail) and from the wrap
    frames past the end, whose lives are shortened by the time into the wrap.

    Args:
        snapshots: One snapshot per simulated step, starting at time 0
        prewarm_frames: Frames of the prewarm pass, possibly empty
        frame_count: Number of main frames after frame 0
        dt: Step length in seconds
        looping: Whether any emitter loops

    Returns:
        frame_count + 1 frames
    """
    frames = [BakedFrame(0.0, snapshots[0])]
    for frame_index in range(1, frame_count + 1):
        snapshot = snapshots[frame_index]
        merged = dict(snapshot)

        if looping and prewarm_frames:
            if frame_index < len(prewarm_frames):
                for key, data in prewarm_frames[frame_index].particles.items():
                    if key not in snapshot:
                        merged[key] = data

            frames_from_end = frame_count - frame_index
            if 0 <= frames_from_end < len(prewarm_frames):
                tail = prewarm_frames[len(prewarm_frames) - 1 - frames_from_end]
                for key, data in tail.particles.items():
                    if key not in merged:
                        merged[key] = data

        if looping:
            wrap_index = frame_count + frame_index
            if wrap_index < len(snapshots):
                time_into_wrap = frame_index * dt
                for key, data in snapshots[wrap_index].items():
                    if key in snapshot:
                        continue
                    adjusted = data.life - time_into_wrap
                    if adjusted > 0:
                        merged[key] = replace(data, life=adjusted)

        frames.append(BakedFrame(frame_index * dt, merged))
    return frames


def bake(settings: EffectSettings, seed: Optional[int] = None) -> BakeResult:
    """
    Bake an effect into frame snapshots.

    Args:
        settings: Effect to bake (not modified)
        seed: Seed for reproducible bakes; unseeded when None

    Returns:
        BakeResult with ceil(duration * fps) + 1 main frames, and prewarm
        frames when any looping emitter prewarms. A zero duration bakes a
        single frame.

    Raises:
        ValueError: If fps is not positive
    """
    if settings.fps <= 0:
        raise ValueError(f"fps must be positive, got {settings.fps}")

    duration = settings.duration
    if duration < 0:
        logger.warning("Negative duration %s treated as 0", duration)
        duration = 0.0

    engine = ParticleEngine(settings, rng=np.random.default_rng(seed))
    dt = 1.0 / settings.fps
    frame_count = math.ceil(duration * settings.fps)

    # Prewarm pass
    prewarm_ids = [e.id for e in settings.emitters if e.prewarm and e.looping and e.enabled]
    prewarm_frames: List[BakedFrame] = []
    if prewarm_ids:
        prewarm_frames.append(BakedFrame(0.0, capture_snapshot(engine)))
        for i in range(frame_count):
            engine.update(dt, suppress_clock=True, emitter_ids=prewarm_ids)
            prewarm_frames.append(BakedFrame((i + 1) * dt, capture_snapshot(engine)))
        # Keep the warmed particles but restart the clock
        engine.time = 0.0

    # Main pass, with extra time for wrap-around when looping
    looping = any(e.looping for e in settings.emitters)
    extra_time = max((e.life_time_max for e in settings.emitters), default=0.0) if looping else 0.0
    total_frames = math.ceil((duration + extra_time) * settings.fps)

    all_snapshots = [capture_snapshot(engine)]
    for _ in range(total_frames):
        engine.update(dt)
        all_snapshots.append(capture_snapshot(engine))

    frames = merge_loop_frames(all_snapshots, prewarm_frames, frame_count, dt, looping)

    result = BakeResult(frames, prewarm_frames)
    logger.info(
        "Baked %d frames (%d prewarm), %d unique particles",
        len(frames), len(prewarm_frames), len(result.particle_keys),
    )
    return result
