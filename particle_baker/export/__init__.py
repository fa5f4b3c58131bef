"""
Particle Baker - Baking and Export
"""

from .baking import (
    ParticleKey, ParticleSnapshot, BakedFrame, BakeResult, make_particle_key, merge_loop_frames, bake,
)
from .decimation import decimate_keyframes, analyze_keyframe_density
from .keyframes import (
    Visibility, ParticleTrack, ParticleKeyframes,
    normalize_angle, smooth_angles, is_particle_visible, build_particle_keyframes,
)
from .skeleton import (
    Bone, Slot, RegionAttachment, Naming,
    collect_particles_by_emitter, build_bone_hierarchy, build_slots_and_skins,
)
from .animations import (
    AnimationData, build_animations, normalize_animation_times, add_loop_seam_keys,
)
from .document import AnimationDocument, build_document, generate_document_json
from .sprites import create_particle_sprite, load_custom_sprite
from .atlas import AtlasRegion, pack_atlas, atlas_text
from .archive import write_export, export_effect
