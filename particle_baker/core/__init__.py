"""
Particle Baker - Core Utilities
"""

from .curves import (
    Curve, CurvePoint, ColorGradient, RangeValue,
    evaluate_curve, evaluate_color_gradient, sample_range, clamp01,
)
from .noise import simple_noise, noise_2d
from .settings import (
    MAX_EMITTERS,
    EmissionType, EmitterShape, EmissionMode, SpawnAngleMode,
    WindSettings, ExportSettings, EmitterConfig, EffectSettings,
)
from .config import (
    BUILTIN_PRESETS, list_presets, get_preset, default_settings,
    load_settings, save_settings,
)
