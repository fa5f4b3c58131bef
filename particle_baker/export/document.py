"""
Animation Document

Ties skeleton structure and animations together into the document a
skeletal runtime loads: {skeleton, bones, slots, skins, animations}.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..core.settings import EffectSettings
from .animations import AnimationData, build_animations
from .baking import BakeResult
from .skeleton import (
    Bone,
    Naming,
    Slot,
    build_bone_hierarchy,
    build_slots_and_skins,
    collect_particles_by_emitter,
)


logger = logging.getLogger(__name__)

SKELETON_HASH = "particle_export"


@dataclass
class AnimationDocument:
    skeleton: Dict[str, Any]
    bones: List[Bone] = field(default_factory=list)
    slots: List[Slot] = field(default_factory=list)
    skins: Dict[str, Any] = field(default_factory=dict)
    animations: Dict[str, AnimationData] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'skeleton': self.skeleton,
            'bones': [b.to_spine_dict() for b in self.bones],
            'slots': [s.to_spine_dict() for s in self.slots],
            'skins': self.skins,
            'animations': {name: anim.to_spine_dict() for name, anim in self.animations.items()},
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def build_document(
    result: BakeResult,
    settings: EffectSettings,
    sprite_names: Optional[Mapping[str, str]] = None,
) -> AnimationDocument:
    """
    Convert baked frames into an animation document.

    Args:
        result: Output of bake()
        settings: The settings that were baked
        sprite_names: Optional emitter id -> image name mapping; emitters
            without an entry use sprite_<n>

    Returns:
        AnimationDocument ready for to_dict() / to_json()
    """
    naming = Naming(settings, sprite_names)
    particles = collect_particles_by_emitter(result.frames, settings)

    skeleton = {
        'hash': SKELETON_HASH,
        'spine': settings.export_settings.spine_version,
        'x': 0,
        'y': 0,
        'width': settings.frame_size,
        'height': settings.frame_size,
    }

    hierarchy = build_bone_hierarchy(settings, particles)
    slots, skins, tracks, particle_bones = build_slots_and_skins(settings, particles, naming)
    animations = build_animations(result.frames, result.prewarm_frames, settings, tracks, naming)

    logger.info(
        "Built document: %d bones, %d slots, %d animation(s)",
        len(hierarchy) + len(particle_bones), len(slots), len(animations),
    )

    return AnimationDocument(
        skeleton=skeleton,
        bones=hierarchy + particle_bones,
        slots=slots,
        skins=skins,
        animations=animations,
    )


def generate_document_json(
    result: BakeResult,
    settings: EffectSettings,
    sprite_names: Optional[Mapping[str, str]] = None,
) -> str:
    """Bake result to the document JSON text"""
    return build_document(result, settings, sprite_names).to_json()
