"""
Lifetime Curves and Ranges

Piecewise curves that map normalized particle lifetime [0, 1] to a scalar
multiplier, RGBA color gradients, and uniform min/max ranges sampled once
per particle at spawn.

All evaluation here is pure: the same curve and t always give the same value.
Random draws come from a numpy Generator handed in by the caller.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import numpy as np


Color = Tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)


# =============================================================================
# Helpers
# =============================================================================

def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]"""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (matches color rounding)"""
    return int(math.floor(value + 0.5))


def _ease_in_out_quad(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


def _find_segment(times: List[float], t: float) -> int:
    """Index of the point that starts the segment containing t"""
    i = 0
    while i < len(times) - 1 and times[i + 1] < t:
        i += 1
    return i


# =============================================================================
# Scalar Curves
# =============================================================================

@dataclass
class CurvePoint:
    """Single control point of a lifetime curve"""
    time: float
    value: float

    def to_dict(self) -> Dict[str, float]:
        return {'time': self.time, 'value': self.value}

    @classmethod
    def from_dict(cls, data: Any) -> 'CurvePoint':
        if isinstance(data, (list, tuple)):
            return cls(float(data[0]), float(data[1]))
        return cls(float(data.get('time', 0.0)), float(data.get('value', 0.0)))


@dataclass
class Curve:
    """
    Piecewise curve over normalized lifetime.

    Points may be stored in any order; evaluation sorts them by time.
    Interpolation is either 'linear' or 'smooth' (quadratic ease in-out
    between neighbouring points).
    """
    points: List[CurvePoint] = field(default_factory=list)
    interpolation: str = 'linear'

    def sample(self, t: float) -> float:
        """Sample the curve at t (clamped to 0-1)"""
        return evaluate_curve(self, t)

    @classmethod
    def constant(cls, value: float) -> 'Curve':
        return cls([CurvePoint(0.0, value), CurvePoint(1.0, value)])

    @classmethod
    def ramp(cls, start: float, end: float, interpolation: str = 'linear') -> 'Curve':
        return cls([CurvePoint(0.0, start), CurvePoint(1.0, end)], interpolation)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points': [p.to_dict() for p in self.points],
            'interpolation': self.interpolation,
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'Curve':
        """Create from a dict, or from a bare list of points"""
        if isinstance(data, Curve):
            return data
        if isinstance(data, (list, tuple)):
            return cls([CurvePoint.from_dict(p) for p in data])
        return cls(
            points=[CurvePoint.from_dict(p) for p in data.get('points', [])],
            interpolation=data.get('interpolation', 'linear'),
        )


def evaluate_curve(curve: Curve, t: float) -> float:
    """
    Evaluate a lifetime curve.

    Args:
        curve: Curve to sample
        t: Normalized time, clamped to [0, 1]

    Returns:
        Interpolated value. An empty curve gives 0.0 and a single point
        curve is constant.
    """
    points = sorted(curve.points, key=lambda p: p.time)
    if not points:
        return 0.0
    if len(points) == 1:
        return points[0].value

    t = clamp01(t)
    i = _find_segment([p.time for p in points], t)
    if i >= len(points) - 1:
        return points[-1].value

    p1 = points[i]
    p2 = points[i + 1]
    span = p2.time - p1.time
    local_t = (t - p1.time) / span if span > 0 else 0.0
    local_t = clamp01(local_t)

    if curve.interpolation == 'smooth':
        local_t = _ease_in_out_quad(local_t)

    return p1.value + (p2.value - p1.value) * local_t


# =============================================================================
# Color Gradients
# =============================================================================

@dataclass
class ColorGradient:
    """
    Color over lifetime.

    Stops are (time, RGBA) pairs with channels in 0-255.
    """
    colors: List[Tuple[float, Color]] = field(default_factory=list)

    def sample(self, t: float) -> Color:
        """Sample color at time t (0-1)"""
        return evaluate_color_gradient(self, t)

    @classmethod
    def solid(cls, r: int, g: int, b: int, fade: bool = True) -> 'ColorGradient':
        """Solid color, optionally fading alpha to zero"""
        return cls([
            (0.0, (r, g, b, 255)),
            (1.0, (r, g, b, 0 if fade else 255)),
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points': [
                {'time': time, 'color': {'r': c[0], 'g': c[1], 'b': c[2], 'a': c[3]}}
                for time, c in self.colors
            ]
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'ColorGradient':
        if isinstance(data, ColorGradient):
            return data
        raw = data.get('points', []) if isinstance(data, dict) else data
        colors = []
        for point in raw:
            if isinstance(point, dict):
                c = point.get('color', {})
                if isinstance(c, dict):
                    rgba = (c.get('r', 255), c.get('g', 255), c.get('b', 255), c.get('a', 255))
                else:
                    rgba = tuple(c)
                colors.append((float(point.get('time', 0.0)), tuple(int(v) for v in rgba)))
            else:
                colors.append((float(point[0]), tuple(int(v) for v in point[1])))
        return cls(colors)


def evaluate_color_gradient(gradient: ColorGradient, t: float) -> Color:
    """
    Evaluate a color gradient.

    Channels are linearly interpolated and rounded. An empty gradient is
    opaque white.
    """
    stops = sorted(gradient.colors, key=lambda s: s[0])
    if not stops:
        return WHITE
    if len(stops) == 1:
        return tuple(stops[0][1])

    t = clamp01(t)
    i = _find_segment([s[0] for s in stops], t)
    if i >= len(stops) - 1:
        return tuple(stops[-1][1])

    t1, c1 = stops[i]
    t2, c2 = stops[i + 1]
    span = t2 - t1
    local_t = clamp01((t - t1) / span) if span > 0 else 0.0

    return tuple(
        round_half_up(c1[k] + (c2[k] - c1[k]) * local_t)
        for k in range(4)
    )


# =============================================================================
# Ranges
# =============================================================================

@dataclass
class RangeValue:
    """Inclusive [min, max] range sampled uniformly"""
    min: float = 0.0
    max: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'min': self.min, 'max': self.max}

    @classmethod
    def from_dict(cls, data: Any) -> 'RangeValue':
        if isinstance(data, RangeValue):
            return data
        if isinstance(data, (int, float)):
            return cls(float(data), float(data))
        if isinstance(data, (list, tuple)):
            return cls(float(data[0]), float(data[1]))
        return cls(float(data.get('min', 0.0)), float(data.get('max', 0.0)))


def sample_range(value_range: RangeValue, rng: np.random.Generator) -> float:
    """Draw uniformly from [min, max]"""
    return value_range.min + rng.random() * (value_range.max - value_range.min)
