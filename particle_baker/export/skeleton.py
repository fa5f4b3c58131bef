"""
Skeleton Structure

Builds the flat bone hierarchy (root, one bone per emitter, one bone per
particle), one slot per particle bone, and the default skin that gives
every slot a single region attachment.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from ..core.settings import EffectSettings
from .baking import BakedFrame, make_particle_key
from .keyframes import ParticleTrack, round_to


ROOT_BONE = "root"
REGION_SIZE = 64


# =============================================================================
# Structure types
# =============================================================================

@dataclass
class Bone:
    """Represents a single bone in the skeleton"""
    name: str
    parent: str = ""
    x: float = 0.0
    y: float = 0.0

    def to_spine_dict(self) -> dict:
        data = {"name": self.name}
        if self.parent:
            data["parent"] = self.parent
        if self.x != 0:
            data["x"] = round_to(self.x, 2)
        if self.y != 0:
            data["y"] = round_to(self.y, 2)
        return data


@dataclass
class Slot:
    """A particle slot; nothing is attached at setup time"""
    name: str
    bone: str
    attachment: Optional[str] = None

    def to_spine_dict(self) -> dict:
        return {"name": self.name, "bone": self.bone, "attachment": self.attachment}


@dataclass
class RegionAttachment:
    name: str
    path: str
    width: int = REGION_SIZE
    height: int = REGION_SIZE

    def to_spine_dict(self) -> dict:
        return {
            "type": "region",
            "name": self.name,
            "path": self.path,
            "x": 0,
            "y": 0,
            "scaleX": 1,
            "scaleY": 1,
            "rotation": 0,
            "width": self.width,
            "height": self.height,
        }


# =============================================================================
# Naming
# =============================================================================

_EMITTER_ID_RE = re.compile(r'emitter_(\d+)')


class Naming:
    """
    Bone, slot and sprite names for an effect.

    Args:
        settings: Effect whose emitter order defines the e<n> prefixes
        sprite_names: Optional emitter id -> image name overrides
    """

    def __init__(self, settings: EffectSettings, sprite_names: Optional[Mapping[str, str]] = None):
        self._index = {em.id: i for i, em in enumerate(settings.emitters)}
        self._sprite_names = dict(sprite_names or {})

    def emitter_prefix(self, emitter_id: str) -> str:
        index = self._index.get(emitter_id)
        if index is not None:
            return f"e{index + 1}"
        match = _EMITTER_ID_RE.search(emitter_id)
        return f"e{match.group(1)}" if match else emitter_id

    def bone_name(self, emitter_id: str, particle_id: int) -> str:
        return f"{self.emitter_prefix(emitter_id)}_particle_{particle_id}"

    def slot_name(self, emitter_id: str, particle_id: int) -> str:
        return f"{self.emitter_prefix(emitter_id)}_particle_slot_{particle_id}"

    def sprite_name(self, emitter_id: str) -> str:
        if emitter_id in self._sprite_names:
            return self._sprite_names[emitter_id]
        index = self._index.get(emitter_id)
        return f"sprite_{index + 1}" if index is not None else "particle"


# =============================================================================
# Builders
# =============================================================================

def collect_particles_by_emitter(frames: Sequence[BakedFrame],
                                 settings: EffectSettings) -> Dict[str, Set[int]]:
    """
    Particle ids seen per emitter across all frames.

    Disabled emitters are dropped. Looping emitters with prewarm keep only
    ids below floor(rate * duration), which caps the bone count at one
    cycle's worth of particles.
    """
    by_emitter: Dict[str, Set[int]] = {}
    for frame in frames:
        for snap in frame.particles.values():
            by_emitter.setdefault(snap.emitter_id, set()).add(snap.local_id)

    for em in settings.emitters:
        if not em.enabled:
            by_emitter.pop(em.id, None)
            continue
        ids = by_emitter.get(em.id)
        if ids is None:
            continue
        if em.looping and em.prewarm:
            max_bones = math.floor(em.rate * settings.duration)
            by_emitter[em.id] = {i for i in ids if i < max_bones}

    return by_emitter


def build_bone_hierarchy(settings: EffectSettings,
                         particles_by_emitter: Mapping[str, Set[int]]) -> List[Bone]:
    """Root bone plus one bone per enabled emitter that has particles"""
    bones = [Bone(ROOT_BONE)]
    for em in settings.emitters:
        if not em.enabled or em.id not in particles_by_emitter:
            continue
        bones.append(Bone(em.name, parent=ROOT_BONE, x=em.position[0], y=em.position[1]))
    return bones


def build_slots_and_skins(
    settings: EffectSettings,
    particles_by_emitter: Mapping[str, Set[int]],
    naming: Naming,
) -> Tuple[List[Slot], Dict[str, Any], List[ParticleTrack], List[Bone]]:
    """
    Particle bones, their slots, and the default skin.

    Returns:
        (slots, skins, particle_tracks, particle_bones), all in emitter order
        then ascending particle id
    """
    slots: List[Slot] = []
    skins: Dict[str, Any] = {"default": {}}
    tracks: List[ParticleTrack] = []
    bones: List[Bone] = []

    for em in settings.emitters:
        if not em.enabled or em.id not in particles_by_emitter:
            continue

        sprite = naming.sprite_name(em.id)
        region = RegionAttachment(sprite, sprite).to_spine_dict()

        for pid in sorted(particles_by_emitter[em.id]):
            bone_name = naming.bone_name(em.id, pid)
            slot_name = naming.slot_name(em.id, pid)

            tracks.append(ParticleTrack(make_particle_key(em.id, pid), bone_name, slot_name))
            bones.append(Bone(bone_name, parent=em.name))
            slots.append(Slot(slot_name, bone_name))
            skins["default"][slot_name] = {sprite: dict(region)}

    return slots, skins, tracks, bones
