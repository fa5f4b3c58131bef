"""
Effect Settings - authored configuration for a particle effect

An effect is a handful of emitters (at most MAX_EMITTERS) plus global timing
and export options. Everything here is plain data: the engine never mutates
settings during a bake.

Dictionaries use snake_case keys; camelCase keys are accepted as aliases
when loading so files written by other tools load unchanged.
"""

import copy
import logging
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .curves import ColorGradient, Curve, RangeValue


logger = logging.getLogger(__name__)

MAX_EMITTERS = 5


# ============================================================================
# Enumerations
# ============================================================================

class EmissionType(Enum):
    """How an emitter decides when to spawn"""
    CONTINUOUS = "continuous"
    BURST = "burst"
    DURATION = "duration"


class EmitterShape(Enum):
    """Spawn area of an emitter"""
    POINT = "point"
    LINE = "line"
    CIRCLE = "circle"
    RECTANGLE = "rectangle"
    ROUNDED_RECT = "roundedRect"


class EmissionMode(Enum):
    """Fill the shape or only its outline"""
    AREA = "area"
    EDGE = "edge"


class SpawnAngleMode(Enum):
    """Initial particle rotation policy"""
    ALIGN_MOTION = "alignMotion"
    SPECIFIC = "specific"
    RANDOM = "random"
    RANGE = "range"


def parse_enum(enum_cls, value: Any) -> Union[Enum, str]:
    """
    Resolve a value to an enum member.

    Unknown values are kept as the raw string so callers can report and
    skip them instead of failing the whole load.
    """
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value == member.value or (isinstance(value, str) and value.upper() == member.name):
            return member
    return value


def enum_value(value: Union[Enum, str]) -> str:
    return value.value if isinstance(value, Enum) else value


_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def _snake(key: str) -> str:
    return _CAMEL_RE.sub('_', key).lower()


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """camelCase -> snake_case"""
    result = {}
    for key, value in data.items():
        result[_snake(key)] = value
    return result


def _vec(value: Any, default: Tuple[float, float] = (0.0, 0.0)) -> Tuple[float, float]:
    if value is None:
        return default
    if isinstance(value, dict):
        return (float(value.get('x', default[0])), float(value.get('y', default[1])))
    return (float(value[0]), float(value[1]))


def _vec_dict(value: Tuple[float, float]) -> Dict[str, float]:
    return {'x': value[0], 'y': value[1]}


# ============================================================================
# Wind
# ============================================================================

@dataclass
class WindSettings:
    """Directional wind with an optional area volume and turbulence"""

    enabled: bool = False

    # Direction
    direction_mode: str = "angle"            # 'angle' | 'vector'
    direction_angle: float = 0.0             # degrees
    direction_vector: Tuple[float, float] = (1.0, 0.0)

    # Strength
    strength: float = 0.0
    strength_randomness: float = 0.0         # fraction, per particle
    direction_randomness: float = 0.0        # degrees, per particle

    # Area
    area_shape: str = "global"               # 'global' | 'rect' | 'circle'
    area_rect_center: Tuple[float, float] = (0.0, 0.0)
    area_rect_size: Tuple[float, float] = (200.0, 200.0)
    area_circle_center: Tuple[float, float] = (0.0, 0.0)
    area_circle_radius: float = 100.0
    falloff: float = 0.0                     # fraction of the area that fades out

    # Turbulence
    turbulence_enabled: bool = False
    turbulence_strength: float = 0.0
    turbulence_scale: float = 0.01
    turbulence_frequency: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = _vec_dict(value) if isinstance(value, tuple) else value
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'WindSettings':
        if isinstance(data, WindSettings):
            return data
        data = dict(data or {})

        # Nested area blocks as used by the editor format
        rect = data.pop('areaRect', data.pop('area_rect', None))
        if rect:
            data.setdefault('area_rect_center', rect.get('center'))
            data.setdefault('area_rect_size', rect.get('size'))
        circle = data.pop('areaCircle', data.pop('area_circle', None))
        if circle:
            data.setdefault('area_circle_center', circle.get('center'))
            data.setdefault('area_circle_radius', circle.get('radius'))

        data = _normalize_keys(data)
        defaults = cls()
        kwargs = {}
        for f in fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            value = data[f.name]
            if isinstance(getattr(defaults, f.name), tuple):
                value = _vec(value, getattr(defaults, f.name))
            kwargs[f.name] = value
        return cls(**kwargs)


# ============================================================================
# Export Options
# ============================================================================

@dataclass
class ExportSettings:
    """Which tracks to export and how aggressively to drop keys"""

    export_translate: bool = True
    export_rotate: bool = True
    export_scale: bool = True
    export_color: bool = True

    position_threshold: float = 12.0     # distance units
    rotation_threshold: float = 20.0     # degrees
    scale_threshold: float = 0.2         # per-axis delta
    color_threshold: float = 60.0        # summed channel delta on 0-255

    spine_version: str = "4.2.00"

    # 0 disables decimation
    decimation_percent: float = 0.0
    decimation_window: float = 0.3

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ExportSettings':
        if isinstance(data, ExportSettings):
            return data
        data = _normalize_keys(data or {})
        valid = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid})


# ============================================================================
# Emitter
# ============================================================================

# Curve and range fields, with the defaults a freshly created emitter gets
_CURVE_DEFAULTS = {
    'rate_over_time': (1.0, 1.0),
    'gravity_over_lifetime': (1.0, 1.0),
    'drag_over_lifetime': (1.0, 1.0),
    'size_over_lifetime': (1.0, 0.2),
    'size_x_over_lifetime': (1.0, 0.2),
    'size_y_over_lifetime': (1.0, 0.2),
    'speed_over_lifetime': (1.0, 1.0),
    'weight_over_lifetime': (1.0, 1.0),
    'spin_over_lifetime': (0.0, 0.0),
    'angular_velocity_over_lifetime': (0.0, 0.0),
    'attraction_over_lifetime': (0.0, 0.0),
    'noise_strength_over_lifetime': (0.0, 0.0),
    'vortex_strength_over_lifetime': (0.0, 0.0),
}

_RANGE_DEFAULTS = {
    'gravity_range': (0.0, 0.0),
    'drag_range': (1.0, 1.0),
    'size_range': (1.0, 1.0),
    'size_x_range': (1.0, 1.0),
    'size_y_range': (1.0, 1.0),
    'initial_speed_range': (100.0, 200.0),
    'speed_range': (1.0, 1.0),
    'weight_range': (1.0, 1.0),
    'spin_range': (0.0, 0.0),
    'angular_velocity_range': (0.0, 0.0),
    'attraction_range': (0.0, 0.0),
    'noise_strength_range': (0.0, 0.0),
    'noise_frequency_range': (0.02, 0.08),
    'noise_speed_range': (2.0, 4.0),
    'vortex_strength_range': (0.0, 0.0),
}


def _curve(key: str):
    start, end = _CURVE_DEFAULTS[key]
    return field(default_factory=lambda: Curve.ramp(start, end))


def _range(key: str):
    lo, hi = _RANGE_DEFAULTS[key]
    return field(default_factory=lambda: RangeValue(lo, hi))


@dataclass
class EmitterConfig:
    """One particle source: shape, timing, forces and appearance"""

    id: str = "emitter_1"
    name: str = "Emitter 1"
    enabled: bool = True

    # Shape and position
    position: Tuple[float, float] = (0.0, 0.0)
    shape: Union[EmitterShape, str] = EmitterShape.POINT
    shape_radius: float = 20.0
    shape_width: float = 100.0
    shape_height: float = 100.0
    shape_rotation: float = 0.0
    round_radius: float = 20.0
    line_length: float = 100.0
    line_spread_rotation: float = 0.0
    emission_mode: Union[EmissionMode, str] = EmissionMode.AREA
    circle_thickness: float = 10.0
    circle_arc: float = 360.0
    rectangle_thickness: float = 10.0
    rectangle_arc: float = 360.0

    # Direction and rate
    angle: float = -90.0
    angle_spread: float = 30.0
    rate: float = 10.0
    rate_over_time: Curve = _curve('rate_over_time')
    max_particles: int = 500

    # Emission timing
    emission_type: Union[EmissionType, str] = EmissionType.CONTINUOUS
    burst_count: int = 10
    burst_cycles: int = 1
    burst_interval: float = 0.5
    duration_start: float = 0.0
    duration_end: float = 2.0
    looping: bool = True
    prewarm: bool = False
    start_delay: float = 0.0

    # Lifetime
    life_time_min: float = 0.5
    life_time_max: float = 1.5

    # Physics
    gravity_over_lifetime: Curve = _curve('gravity_over_lifetime')
    gravity_range: RangeValue = _range('gravity_range')
    drag_over_lifetime: Curve = _curve('drag_over_lifetime')
    drag_range: RangeValue = _range('drag_range')

    # Size
    separate_size: bool = False
    size_range: RangeValue = _range('size_range')
    size_over_lifetime: Curve = _curve('size_over_lifetime')
    size_x_over_lifetime: Curve = _curve('size_x_over_lifetime')
    size_x_range: RangeValue = _range('size_x_range')
    size_y_over_lifetime: Curve = _curve('size_y_over_lifetime')
    size_y_range: RangeValue = _range('size_y_range')
    scale_ratio_x: float = 1.0
    scale_ratio_y: float = 1.0

    # Speed and movement
    initial_speed_range: RangeValue = _range('initial_speed_range')
    speed_over_lifetime: Curve = _curve('speed_over_lifetime')
    speed_range: RangeValue = _range('speed_range')
    weight_over_lifetime: Curve = _curve('weight_over_lifetime')
    weight_range: RangeValue = _range('weight_range')

    # Rotation (degrees, degrees per second)
    spin_over_lifetime: Curve = _curve('spin_over_lifetime')
    spin_range: RangeValue = _range('spin_range')
    angular_velocity_over_lifetime: Curve = _curve('angular_velocity_over_lifetime')
    angular_velocity_range: RangeValue = _range('angular_velocity_range')
    spawn_angle_mode: Union[SpawnAngleMode, str] = SpawnAngleMode.ALIGN_MOTION
    spawn_angle: float = 0.0
    spawn_angle_min: float = -45.0
    spawn_angle_max: float = 45.0

    # Attraction
    attraction_over_lifetime: Curve = _curve('attraction_over_lifetime')
    attraction_range: RangeValue = _range('attraction_range')
    attraction_point: Tuple[float, float] = (0.0, 0.0)

    # Noise
    noise_strength_over_lifetime: Curve = _curve('noise_strength_over_lifetime')
    noise_strength_range: RangeValue = _range('noise_strength_range')
    noise_frequency_range: RangeValue = _range('noise_frequency_range')
    noise_speed_range: RangeValue = _range('noise_speed_range')

    # Vortex
    vortex_strength_over_lifetime: Curve = _curve('vortex_strength_over_lifetime')
    vortex_strength_range: RangeValue = _range('vortex_strength_range')
    vortex_point: Tuple[float, float] = (0.0, 0.0)

    # Wind
    wind: WindSettings = field(default_factory=WindSettings)

    # Appearance
    color_over_lifetime: ColorGradient = field(
        default_factory=lambda: ColorGradient.solid(255, 255, 255)
    )
    particle_sprite: str = "circle"
    custom_sprite_data: Optional[str] = None

    # Export
    export_loop: bool = True
    export_prewarm: bool = True
    export_settings: Optional[ExportSettings] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for YAML/JSON"""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (Curve, ColorGradient, RangeValue, WindSettings, ExportSettings)):
                value = value.to_dict()
            elif isinstance(value, Enum):
                value = value.value
            elif isinstance(value, tuple):
                value = _vec_dict(value)
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EmitterConfig':
        """
        Create from a dictionary.

        Accepts the flat form as well as the editor form where parameters
        live under a nested 'settings' block. Unknown keys are ignored.
        """
        data = dict(data)
        nested = data.pop('settings', None)
        if isinstance(nested, dict):
            data.update(nested)

        data = _normalize_keys(data)

        kwargs = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name in _CURVE_DEFAULTS:
                value = Curve.from_dict(value)
            elif f.name in _RANGE_DEFAULTS:
                value = RangeValue.from_dict(value)
            elif f.name == 'color_over_lifetime':
                value = ColorGradient.from_dict(value)
            elif f.name == 'wind':
                value = WindSettings.from_dict(value)
            elif f.name == 'export_settings':
                value = ExportSettings.from_dict(value) if value is not None else None
            elif f.name in ('position', 'attraction_point', 'vortex_point'):
                value = _vec(value)
            elif f.name == 'shape':
                value = parse_enum(EmitterShape, value)
            elif f.name == 'emission_mode':
                value = parse_enum(EmissionMode, value)
            elif f.name == 'emission_type':
                value = parse_enum(EmissionType, value)
            elif f.name == 'spawn_angle_mode':
                value = parse_enum(SpawnAngleMode, value)
            kwargs[f.name] = value

        return cls(**kwargs)


# ============================================================================
# Effect
# ============================================================================

@dataclass
class EffectSettings:
    """A complete effect: emitters plus global timing and export options"""

    emitters: List[EmitterConfig] = field(default_factory=lambda: [EmitterConfig()])
    duration: float = 2.0
    fps: int = 30
    frame_size: int = 512
    export_settings: ExportSettings = field(default_factory=ExportSettings)

    def __post_init__(self):
        if len(self.emitters) > MAX_EMITTERS:
            logger.warning(
                "An effect supports at most %d emitters; dropping %d",
                MAX_EMITTERS, len(self.emitters) - MAX_EMITTERS,
            )
            self.emitters = self.emitters[:MAX_EMITTERS]

    def get_emitter(self, emitter_id: str) -> Optional[EmitterConfig]:
        for emitter in self.emitters:
            if emitter.id == emitter_id:
                return emitter
        return None

    def emitter_index(self, emitter_id: str) -> Optional[int]:
        for i, emitter in enumerate(self.emitters):
            if emitter.id == emitter_id:
                return i
        return None

    def export_settings_for(self, emitter: EmitterConfig) -> ExportSettings:
        """Per-emitter override, else the global export settings"""
        return emitter.export_settings or self.export_settings

    def copy(self) -> 'EffectSettings':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'duration': self.duration,
            'fps': self.fps,
            'frame_size': self.frame_size,
            'export_settings': self.export_settings.to_dict(),
            'emitters': [e.to_dict() for e in self.emitters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EffectSettings':
        data = _normalize_keys(data)
        emitters = [EmitterConfig.from_dict(e) for e in data.get('emitters', [])]
        # Give unnamed emitters stable ids in file order
        for i, emitter in enumerate(emitters):
            raw = data['emitters'][i]
            if 'id' not in raw:
                emitter.id = f"emitter_{i + 1}"
            if 'name' not in raw:
                emitter.name = f"Emitter {i + 1}"

        return cls(
            emitters=emitters,
            duration=float(data.get('duration', 2.0)),
            fps=int(data.get('fps', 30)),
            frame_size=int(data.get('frame_size', 512)),
            export_settings=ExportSettings.from_dict(data.get('export_settings')),
        )
