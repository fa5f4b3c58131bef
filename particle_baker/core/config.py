"""
Effect Configuration Files and Built-in Presets

Effects are stored as YAML (.yaml / .yml) or JSON (.json). A handful of
built-in presets give a starting point for new effects.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .settings import EffectSettings, EmitterConfig


logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')
JSON_SUFFIXES = ('.json',)


# ============================================================================
# Built-in Presets
# ============================================================================

BUILTIN_PRESETS: Dict[str, Dict[str, Any]] = {
    "fountain": {
        "description": "Looping upward spray that falls back under gravity",
        "duration": 2.0,
        "fps": 30,
        "emitters": [{
            "name": "Fountain",
            "angle": -90,
            "angle_spread": 25,
            "rate": 30,
            "initial_speed_range": {"min": 220, "max": 300},
            "gravity_range": {"min": 400, "max": 450},
            "life_time_min": 0.8,
            "life_time_max": 1.2,
            "looping": True,
            "prewarm": True,
            "color_over_lifetime": {"points": [
                {"time": 0.0, "color": {"r": 160, "g": 220, "b": 255, "a": 255}},
                {"time": 1.0, "color": {"r": 60, "g": 120, "b": 255, "a": 0}},
            ]},
            "particle_sprite": "raindrop",
        }],
    },

    "sparks_burst": {
        "description": "Single radial burst of fast sparks",
        "duration": 1.0,
        "fps": 30,
        "emitters": [{
            "name": "Sparks",
            "emission_type": "burst",
            "burst_count": 24,
            "burst_cycles": 1,
            "looping": False,
            "angle_spread": 360,
            "initial_speed_range": {"min": 250, "max": 400},
            "drag_range": {"min": 0.95, "max": 0.97},
            "life_time_min": 0.4,
            "life_time_max": 0.8,
            "spawn_angle_mode": "alignMotion",
            "color_over_lifetime": {"points": [
                {"time": 0.0, "color": {"r": 255, "g": 240, "b": 180, "a": 255}},
                {"time": 0.5, "color": {"r": 255, "g": 140, "b": 40, "a": 255}},
                {"time": 1.0, "color": {"r": 200, "g": 40, "b": 0, "a": 0}},
            ]},
            "particle_sprite": "needle",
        }],
    },

    "smoke": {
        "description": "Slow drifting smoke puffs pushed by a light breeze",
        "duration": 3.0,
        "fps": 24,
        "emitters": [{
            "name": "Smoke",
            "shape": "circle",
            "shape_radius": 15,
            "rate": 8,
            "angle_spread": 20,
            "initial_speed_range": {"min": 30, "max": 60},
            "life_time_min": 1.5,
            "life_time_max": 2.5,
            "size_range": {"min": 0.6, "max": 1.0},
            "size_over_lifetime": {"points": [
                {"time": 0.0, "value": 0.4}, {"time": 1.0, "value": 1.0},
            ], "interpolation": "smooth"},
            "spin_range": {"min": -30, "max": 30},
            "spin_over_lifetime": {"points": [
                {"time": 0.0, "value": 1.0}, {"time": 1.0, "value": 1.0},
            ]},
            "noise_strength_range": {"min": 20, "max": 40},
            "noise_strength_over_lifetime": {"points": [
                {"time": 0.0, "value": 1.0}, {"time": 1.0, "value": 1.0},
            ]},
            "wind": {
                "enabled": True,
                "direction_angle": 0,
                "strength": 25,
                "strength_randomness": 0.3,
            },
            "color_over_lifetime": {"points": [
                {"time": 0.0, "color": {"r": 120, "g": 120, "b": 120, "a": 0}},
                {"time": 0.2, "color": {"r": 140, "g": 140, "b": 140, "a": 180}},
                {"time": 1.0, "color": {"r": 200, "g": 200, "b": 200, "a": 0}},
            ]},
            "particle_sprite": "smoke",
        }],
    },

    "snow": {
        "description": "Gentle snowfall across a wide line with gusty turbulence",
        "duration": 4.0,
        "fps": 24,
        "emitters": [{
            "name": "Snow",
            "shape": "line",
            "angle": 90,
            "line_length": 400,
            "line_spread_rotation": 0,
            "angle_spread": 10,
            "rate": 12,
            "initial_speed_range": {"min": 40, "max": 70},
            "life_time_min": 3.0,
            "life_time_max": 4.0,
            "spawn_angle_mode": "random",
            "wind": {
                "enabled": True,
                "direction_mode": "vector",
                "direction_vector": {"x": 1, "y": 0.2},
                "strength": 10,
                "turbulence_enabled": True,
                "turbulence_strength": 30,
                "turbulence_scale": 0.02,
                "turbulence_frequency": 0.5,
            },
            "color_over_lifetime": {"points": [
                {"time": 0.0, "color": {"r": 255, "g": 255, "b": 255, "a": 0}},
                {"time": 0.1, "color": {"r": 255, "g": 255, "b": 255, "a": 255}},
                {"time": 1.0, "color": {"r": 255, "g": 255, "b": 255, "a": 0}},
            ]},
            "particle_sprite": "snowflake",
        }],
    },
}


def list_presets() -> List[str]:
    """List built-in preset names"""
    return sorted(BUILTIN_PRESETS.keys())


def get_preset(name: str) -> EffectSettings:
    """
    Build settings from a built-in preset.

    Raises:
        ValueError: If the preset does not exist
    """
    if name not in BUILTIN_PRESETS:
        available = ', '.join(list_presets())
        raise ValueError(f"Unknown preset '{name}'. Available: {available}")
    data = copy.deepcopy(BUILTIN_PRESETS[name])
    data.pop('description', None)
    return EffectSettings.from_dict(data)


def default_settings() -> EffectSettings:
    """One continuous emitter with authored defaults"""
    return EffectSettings(emitters=[EmitterConfig()])


# ============================================================================
# Load / Save
# ============================================================================

def load_settings(path: str | Path) -> EffectSettings:
    """
    Load effect settings from a YAML or JSON file.

    Args:
        path: Path ending in .yaml, .yml or .json

    Returns:
        Parsed EffectSettings
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in YAML_SUFFIXES + JSON_SUFFIXES:
        raise ValueError(f"Unsupported config format: {path.suffix or '(none)'}")

    with open(path, 'r') as f:
        if suffix in YAML_SUFFIXES:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} does not contain a mapping")

    settings = EffectSettings.from_dict(data)
    logger.debug("Loaded %d emitter(s) from %s", len(settings.emitters), path)
    return settings


def save_settings(settings: EffectSettings, path: str | Path) -> Path:
    """Save effect settings as YAML or JSON, chosen by suffix"""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in YAML_SUFFIXES + JSON_SUFFIXES:
        raise ValueError(f"Unsupported config format: {path.suffix or '(none)'}")

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        if suffix in YAML_SUFFIXES:
            yaml.safe_dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(settings.to_dict(), f, indent=2)

    return path
