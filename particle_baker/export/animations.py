"""
Animation Building

One builder per emission type decides which animations an emitter exports
and how their timing is treated:

- duration:   duration_<name>, absolute timing (start delay preserved)
- burst:      burst_<name>, shifted to start at zero unless looping
- continuous: loop_<name> and prewarm_<name> when looping (with seam keys),
              animation_<name> otherwise
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..core.settings import EffectSettings, EmissionType, EmitterConfig, enum_value
from .baking import BakedFrame
from .decimation import decimate_keyframes
from .keyframes import ParticleTrack, build_particle_keyframes, is_particle_visible, key_time
from .skeleton import Naming


logger = logging.getLogger(__name__)

BONE_TRACKS = ('translate', 'rotate', 'scale')
SLOT_TRACKS = ('attachment', 'rgba')
# Attachment keys toggle visibility and are never thinned
DECIMATED_TRACKS = ('translate', 'rotate', 'scale', 'rgba')


@dataclass
class AnimationData:
    """Keyframe timelines for one animation, plus track lookups"""
    bones: Dict[str, Dict[str, List[Dict[str, Any]]]] = field(default_factory=dict)
    slots: Dict[str, Dict[str, List[Dict[str, Any]]]] = field(default_factory=dict)
    track_by_bone: Dict[str, ParticleTrack] = field(default_factory=dict)
    track_by_slot: Dict[str, ParticleTrack] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.bones and not self.slots

    def iter_tracks(self) -> Iterator[Tuple[ParticleTrack, str, List[Dict[str, Any]]]]:
        """(particle track, timeline name, keys) for every bone and slot timeline"""
        for bone_name, timelines in self.bones.items():
            for name in BONE_TRACKS:
                if name in timelines:
                    yield self.track_by_bone.get(bone_name), name, timelines[name]
        for slot_name, timelines in self.slots.items():
            for name in SLOT_TRACKS:
                if name in timelines:
                    yield self.track_by_slot.get(slot_name), name, timelines[name]

    def to_spine_dict(self) -> dict:
        return {'bones': self.bones, 'slots': self.slots}


@dataclass
class EmitterAnimationContext:
    """Everything an emission-type builder needs for one emitter"""
    frames: Sequence[BakedFrame]
    prewarm_frames: Sequence[BakedFrame]
    settings: EffectSettings
    emitter: EmitterConfig
    tracks: List[ParticleTrack]
    naming: Naming


# =============================================================================
# Timeline helpers
# =============================================================================

def normalize_animation_times(animation: AnimationData) -> None:
    """Shift every key so the earliest one sits at time 0"""
    times = [key['time'] for _, _, keys in animation.iter_tracks() for key in keys]
    if not times:
        return
    start = min(times)
    if start <= 0:
        return
    for _, _, keys in animation.iter_tracks():
        for key in keys:
            key['time'] = key_time(key['time'] - start)


def add_loop_seam_keys(animation: AnimationData, frames: Sequence[BakedFrame]) -> None:
    """
    Repeat the first key at the loop end on every timeline whose particle
    is visible in the first frame, so the loop closes without a pop.
    """
    if not frames:
        return
    seam_time = key_time(frames[-1].time)
    first = frames[0]

    for track, _, keys in animation.iter_tracks():
        if not keys or track is None:
            continue
        if is_particle_visible(first.particles.get(track.key)):
            seam = dict(keys[0])
            seam['time'] = seam_time
            keys.append(seam)


def build_animation_data(
    frames: Sequence[BakedFrame],
    tracks: Sequence[ParticleTrack],
    settings: EffectSettings,
    naming: Naming,
    normalize_start: bool,
) -> Optional[AnimationData]:
    """
    Keyframes for every particle track over the given frames.

    Returns:
        AnimationData, or None when no particle ever became visible
    """
    if not frames or not tracks:
        return None

    animation = AnimationData()
    for track in tracks:
        animation.track_by_bone[track.bone_name] = track
        animation.track_by_slot[track.slot_name] = track

    for track in tracks:
        emitter = settings.get_emitter(track.emitter_id)
        if emitter is None:
            continue
        export = settings.export_settings_for(emitter)

        keys = build_particle_keyframes(frames, track, export, naming.sprite_name(track.emitter_id))
        if not keys.has_appeared:
            continue

        bone_timelines = keys.bone_timelines()
        slot_timelines = keys.slot_timelines()

        if export.decimation_percent > 0:
            for timelines in (bone_timelines, slot_timelines):
                for name in list(timelines):
                    if name not in DECIMATED_TRACKS:
                        continue
                    before = len(timelines[name])
                    timelines[name] = decimate_keyframes(
                        timelines[name], export.decimation_percent, export.decimation_window
                    )
                    if len(timelines[name]) < before:
                        logger.debug(
                            "Decimated %s/%s: %d -> %d keys",
                            track.bone_name, name, before, len(timelines[name]),
                        )

        if bone_timelines:
            animation.bones[track.bone_name] = bone_timelines
        if slot_timelines:
            animation.slots[track.slot_name] = slot_timelines

    if animation.is_empty():
        return None

    if normalize_start:
        normalize_animation_times(animation)

    return animation


# =============================================================================
# Emission type builders
# =============================================================================

def build_duration_animations(ctx: EmitterAnimationContext, animations: Dict[str, AnimationData]) -> None:
    data = build_animation_data(ctx.frames, ctx.tracks, ctx.settings, ctx.naming, normalize_start=False)
    if data is not None:
        animations[f"duration_{ctx.emitter.name}"] = data


def build_burst_animations(ctx: EmitterAnimationContext, animations: Dict[str, AnimationData]) -> None:
    data = build_animation_data(
        ctx.frames, ctx.tracks, ctx.settings, ctx.naming,
        normalize_start=not ctx.emitter.looping,
    )
    if data is not None:
        animations[f"burst_{ctx.emitter.name}"] = data


def build_continuous_animations(ctx: EmitterAnimationContext, animations: Dict[str, AnimationData]) -> None:
    em = ctx.emitter
    loop_data = build_animation_data(
        ctx.frames, ctx.tracks, ctx.settings, ctx.naming,
        normalize_start=not em.looping,
    )

    prewarm_data = None
    if em.looping and ctx.prewarm_frames:
        prewarm_data = build_animation_data(
            ctx.prewarm_frames, ctx.tracks, ctx.settings, ctx.naming, normalize_start=True,
        )

    if em.looping and loop_data is not None and prewarm_data is not None:
        add_loop_seam_keys(loop_data, ctx.frames)

    if loop_data is not None:
        if em.looping:
            if em.export_loop:
                animations[f"loop_{em.name}"] = loop_data
        else:
            animations[f"animation_{em.name}"] = loop_data

    if prewarm_data is not None and em.export_prewarm:
        animations[f"prewarm_{em.name}"] = prewarm_data


ANIMATION_BUILDERS: Dict[EmissionType, Callable[[EmitterAnimationContext, Dict[str, AnimationData]], None]] = {
    EmissionType.DURATION: build_duration_animations,
    EmissionType.BURST: build_burst_animations,
    EmissionType.CONTINUOUS: build_continuous_animations,
}


def group_tracks_by_emitter(tracks: Sequence[ParticleTrack]) -> Dict[str, List[ParticleTrack]]:
    grouped: Dict[str, List[ParticleTrack]] = {}
    for track in tracks:
        grouped.setdefault(track.emitter_id, []).append(track)
    return grouped


def build_animations(
    frames: Sequence[BakedFrame],
    prewarm_frames: Sequence[BakedFrame],
    settings: EffectSettings,
    tracks: Sequence[ParticleTrack],
    naming: Naming,
) -> Dict[str, AnimationData]:
    """All animations for all enabled emitters, keyed by animation name"""
    animations: Dict[str, AnimationData] = {}
    by_emitter = group_tracks_by_emitter(tracks)

    for em in settings.emitters:
        if not em.enabled:
            continue
        emitter_tracks = by_emitter.get(em.id, [])
        if not emitter_tracks:
            logger.debug("Emitter '%s' has no particles; no animation exported", em.name)
            continue

        builder = ANIMATION_BUILDERS.get(em.emission_type)
        if builder is None:
            logger.warning(
                "Skipping emitter '%s': unknown emission type '%s'",
                em.name, enum_value(em.emission_type),
            )
            continue

        ctx = EmitterAnimationContext(frames, prewarm_frames, settings, em, emitter_tracks, naming)
        before = len(animations)
        builder(ctx, animations)
        if len(animations) == before:
            logger.debug("Emitter '%s' produced no visible keys; omitted", em.name)

    return animations
