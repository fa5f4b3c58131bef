"""
Per-particle Keyframe Synthesis

Turns one particle's trajectory across baked frames into sparse bone and
slot keyframes. A key is written on the first and last frame, whenever
visibility flips, and whenever the value has drifted past its threshold
since the last written key.

When a particle disappears its attachment is cleared, its bone is held in
place with scale (0, 0), and every later key is stepped until it shows up
again so the player never tweens through the invisible gap.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Sequence

from ..core.settings import ExportSettings
from .baking import BakedFrame, ParticleKey, ParticleSnapshot


MIN_VISIBLE_ALPHA = 1.0 / 255.0


# =============================================================================
# Helpers
# =============================================================================

def round_to(value: float, digits: int) -> float:
    """Round half up to a fixed number of decimals"""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def key_time(time: float) -> float:
    """Keyframe times are written with millisecond precision"""
    return round_to(time, 3)


def normalize_angle(angle: float, prev_angle: float) -> float:
    """Shift angle by whole turns until it is within 180 degrees of prev_angle"""
    while angle - prev_angle > 180:
        angle -= 360
    while angle - prev_angle < -180:
        angle += 360
    return angle


def smooth_angles(angles: Sequence[float], window_size: int = 3) -> List[float]:
    """Sliding median filter; edge windows are truncated"""
    half = window_size // 2
    result = []
    for i in range(len(angles)):
        window = sorted(angles[max(0, i - half):min(len(angles), i + half + 1)])
        result.append(window[len(window) // 2])
    return result


def is_particle_visible(particle: Optional[ParticleSnapshot]) -> bool:
    return particle is not None and particle.alpha >= MIN_VISIBLE_ALPHA


def color_hex(r: float, g: float, b: float, a: float) -> str:
    """RRGGBBAA, lowercase, from 0-1 channels"""
    return ''.join(f"{int(round_to(c * 255, 0)):02x}" for c in (r, g, b, a))


# =============================================================================
# Track data
# =============================================================================

class Visibility(Enum):
    """Visibility of a particle track at the current frame"""
    VISIBLE = auto()
    JUST_HIDDEN = auto()     # visible last frame, gone now
    HIDDEN = auto()


@dataclass
class ParticleTrack:
    """A particle together with the bone and slot it is exported to"""
    key: ParticleKey
    bone_name: str
    slot_name: str

    @property
    def emitter_id(self) -> str:
        return self.key.emitter_id

    @property
    def particle_id(self) -> int:
        return self.key.local_id


@dataclass
class ParticleKeyframes:
    translate: List[Dict[str, Any]] = field(default_factory=list)
    rotate: List[Dict[str, Any]] = field(default_factory=list)
    scale: List[Dict[str, Any]] = field(default_factory=list)
    attachment: List[Dict[str, Any]] = field(default_factory=list)
    rgba: List[Dict[str, Any]] = field(default_factory=list)
    has_appeared: bool = False

    def bone_timelines(self) -> Dict[str, List[Dict[str, Any]]]:
        tracks = {'translate': self.translate, 'rotate': self.rotate, 'scale': self.scale}
        return {name: keys for name, keys in tracks.items() if keys}

    def slot_timelines(self) -> Dict[str, List[Dict[str, Any]]]:
        tracks = {'attachment': self.attachment, 'rgba': self.rgba}
        return {name: keys for name, keys in tracks.items() if keys}


# =============================================================================
# Synthesis
# =============================================================================

def build_particle_keyframes(
    frames: Sequence[BakedFrame],
    track: ParticleTrack,
    export: ExportSettings,
    sprite_name: str,
) -> ParticleKeyframes:
    """
    Build keyframes for one particle across all frames.

    Args:
        frames: Baked frames in time order
        track: Particle and its bone/slot names
        export: Track toggles and change thresholds
        sprite_name: Attachment shown while the particle is visible

    Returns:
        ParticleKeyframes; has_appeared is False when the particle was never
        visible in these frames
    """
    keys = ParticleKeyframes()
    snapshots = [frame.particles.get(track.key) for frame in frames]

    # Missing frames repeat the last known angle so the median stays stable
    raw_angles: List[float] = []
    for snap in snapshots:
        if snap is not None:
            raw_angles.append(snap.rotation)
        else:
            raw_angles.append(raw_angles[-1] if raw_angles else 0.0)
    smoothed = smooth_angles(raw_angles, 3)

    prev_pos = None
    prev_rotation: Optional[float] = None
    prev_scale = None
    prev_color = None
    unwrapped = 0.0
    visibility = Visibility.HIDDEN
    stepped = False

    def push(target: List[Dict[str, Any]], key: Dict[str, Any]) -> None:
        if stepped:
            key['curve'] = 'stepped'
        target.append(key)

    last = len(frames) - 1
    for i, (frame, snap) in enumerate(zip(frames, snapshots)):
        time = key_time(frame.time)
        visible = is_particle_visible(snap)
        was_visible = visibility == Visibility.VISIBLE
        changed = visible != was_visible
        edge = i == 0 or i == last or changed

        if visible:
            if not keys.has_appeared or not was_visible:
                keys.has_appeared = True
                keys.attachment.append({'time': time, 'name': sprite_name})
                stepped = False

            if prev_rotation is not None:
                unwrapped = normalize_angle(smoothed[i], unwrapped)
            else:
                unwrapped = smoothed[i]

            if export.export_translate:
                moved = math.hypot(snap.x - prev_pos[0], snap.y - prev_pos[1]) if prev_pos else 0.0
                if edge or prev_pos is None or moved > export.position_threshold:
                    push(keys.translate, {
                        'time': time,
                        'x': round_to(snap.x, 2),
                        'y': round_to(snap.y, 2),
                    })
                    prev_pos = (snap.x, snap.y)

            if export.export_rotate:
                delta = unwrapped - prev_rotation if prev_rotation is not None else 0.0
                if edge or prev_rotation is None or abs(delta) > export.rotation_threshold:
                    push(keys.rotate, {'time': time, 'value': round_to(unwrapped, 2)})
                    prev_rotation = unwrapped

            if export.export_scale:
                if (edge or prev_scale is None
                        or abs(snap.scale_x - prev_scale[0]) > export.scale_threshold
                        or abs(snap.scale_y - prev_scale[1]) > export.scale_threshold):
                    push(keys.scale, {
                        'time': time,
                        'x': round_to(snap.scale_x, 3),
                        'y': round_to(snap.scale_y, 3),
                    })
                    prev_scale = (snap.scale_x, snap.scale_y)

            if export.export_color:
                color = (snap.r / 255, snap.g / 255, snap.b / 255, snap.alpha)
                if prev_color is None:
                    color_changed = True
                else:
                    delta_sum = sum(abs((c - p) * 255) for c, p in zip(color, prev_color))
                    color_changed = delta_sum > export.color_threshold
                if edge or color_changed:
                    push(keys.rgba, {'time': time, 'color': color_hex(*color)})
                    prev_color = color

            visibility = Visibility.VISIBLE
        else:
            if was_visible:
                visibility = Visibility.JUST_HIDDEN
                keys.attachment.append({'time': time, 'name': None})
                stepped = True

                if export.export_translate and prev_pos is not None:
                    push(keys.translate, {
                        'time': time,
                        'x': round_to(prev_pos[0], 2),
                        'y': round_to(prev_pos[1], 2),
                    })
                if export.export_rotate and prev_rotation is not None:
                    push(keys.rotate, {'time': time, 'value': round_to(prev_rotation, 2)})
                if export.export_scale and prev_scale is not None:
                    push(keys.scale, {'time': time, 'x': 0, 'y': 0})
            else:
                visibility = Visibility.HIDDEN

    return keys
