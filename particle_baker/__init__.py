"""
Particle Baker - Bake particle effects into skeletal animations
"""

from .core import (
    EffectSettings, EmitterConfig, ExportSettings, WindSettings,
    load_settings, save_settings, get_preset, list_presets, default_settings,
)
from .simulation import ParticleEngine
from .export import bake, build_document, generate_document_json, export_effect, AnimationDocument, BakeResult

__version__ = "0.1.0"
__all__ = [
    'EffectSettings',
    'EmitterConfig',
    'ExportSettings',
    'WindSettings',
    'ParticleEngine',
    'AnimationDocument',
    'BakeResult',
    'bake',
    'build_document',
    'generate_document_json',
    'export_effect',
    'load_settings',
    'save_settings',
    'get_preset',
    'list_presets',
    'default_settings',
    'bake_to_document',
]


def bake_to_document(
    settings: EffectSettings,
    seed: int = None,
    sprite_names: dict = None,
) -> dict:
    """
    Bake an effect and return the animation document as a dictionary.

    Args:
        settings: Effect to bake
        seed: Optional seed for a reproducible bake
        sprite_names: Optional emitter id -> image name mapping

    Returns:
        Dictionary with skeleton, bones, slots, skins and animations
    """
    result = bake(settings, seed=seed)
    return build_document(result, settings, sprite_names).to_dict()
