"""
Emitter Shapes - spawn position sampling

Each shape returns an offset from the emitter position. Shapes support
area fill or edge-only sampling; edge mode spreads particles across a band
of the configured thickness and can be cropped to part of the outline.
"""

import math
from typing import Tuple

import numpy as np

from ..core.settings import EmissionMode, EmitterConfig, EmitterShape


def _rotate(x: float, y: float, degrees: float) -> Tuple[float, float]:
    rad = math.radians(degrees)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    return (x * cos_r - y * sin_r, x * sin_r + y * cos_r)


def line_offset(em: EmitterConfig, rng: np.random.Generator) -> Tuple[float, float]:
    """Uniform point on a line centered on the emitter, along its angle"""
    angle = math.radians(em.angle)
    distance = (rng.random() - 0.5) * em.line_length
    return (math.cos(angle) * distance, math.sin(angle) * distance)


def circle_offset(em: EmitterConfig, rng: np.random.Generator) -> Tuple[float, float]:
    """Point in a circle (or ring band) limited to an arc centered on the rotation"""
    arc = math.radians(em.circle_arc)
    start = -arc / 2 + math.radians(em.shape_rotation)
    angle = start + rng.random() * arc

    if em.emission_mode == EmissionMode.EDGE:
        half = em.circle_thickness / 2
        min_r = max(0.0, em.shape_radius - half)
        max_r = em.shape_radius + half
        radius = min_r + rng.random() * (max_r - min_r)
    else:
        radius = rng.random() * em.shape_radius

    return (math.cos(angle) * radius, math.sin(angle) * radius)


def rectangle_offset(em: EmitterConfig, rng: np.random.Generator) -> Tuple[float, float]:
    """Point in a rectangle or along its outline, clockwise from top-left"""
    w = em.shape_width
    h = em.shape_height

    if em.emission_mode != EmissionMode.EDGE:
        x = (rng.random() - 0.5) * w
        y = (rng.random() - 0.5) * h
        return _rotate(x, y, em.shape_rotation)

    perimeter = 2 * (w + h)
    t = rng.random() * perimeter * (em.rectangle_arc / 360.0)
    band = (rng.random() - 0.5) * em.rectangle_thickness

    if t < w:
        # Top
        x, y = t - w / 2, -h / 2 - band
    elif t < w + h:
        # Right
        x, y = w / 2 + band, (t - w) - h / 2
    elif t < 2 * w + h:
        # Bottom
        x, y = w - (t - w - h) - w / 2, h / 2 + band
    else:
        # Left
        x, y = -w / 2 - band, h - (t - 2 * w - h) - h / 2

    return _rotate(x, y, em.shape_rotation)


def rounded_rect_offset(em: EmitterConfig, rng: np.random.Generator) -> Tuple[float, float]:
    """
    Point in a rounded rectangle or along its outline.

    The outline is walked clockwise from the top-left end of the top edge:
    straight run, quarter arc, straight run, and so on. The band offset is
    applied along the outward normal, radially on the corners.
    """
    w = em.shape_width
    h = em.shape_height

    if em.emission_mode != EmissionMode.EDGE:
        x = (rng.random() - 0.5) * w
        y = (rng.random() - 0.5) * h
        return _rotate(x, y, em.shape_rotation)

    r = min(em.round_radius, w / 2, h / 2)
    straight_w = w - 2 * r
    straight_h = h - 2 * r
    quarter = math.pi * r / 2
    perimeter = 2 * (straight_w + straight_h) + 4 * quarter

    t = rng.random() * perimeter * (em.rectangle_arc / 360.0)
    band = (rng.random() - 0.5) * em.rectangle_thickness

    # (length, kind, payload) segments in walk order
    segments = [
        (straight_w, 'top', None),
        (quarter, 'arc', (w / 2 - r, -h / 2 + r, -math.pi / 2)),
        (straight_h, 'right', None),
        (quarter, 'arc', (w / 2 - r, h / 2 - r, 0.0)),
        (straight_w, 'bottom', None),
        (quarter, 'arc', (-w / 2 + r, h / 2 - r, math.pi / 2)),
        (straight_h, 'left', None),
        (quarter, 'arc', (-w / 2 + r, -h / 2 + r, math.pi)),
    ]

    x = y = 0.0
    last = len(segments) - 1
    for i, (length, kind, payload) in enumerate(segments):
        if t < length or i == last:
            if kind == 'top':
                x, y = t - w / 2 + r, -h / 2 - band
            elif kind == 'right':
                x, y = w / 2 + band, t - h / 2 + r
            elif kind == 'bottom':
                x, y = (w / 2 - r) - t, h / 2 + band
            elif kind == 'left':
                x, y = -w / 2 - band, (h / 2 - r) - t
            else:
                cx, cy, start = payload
                angle = start + (t / r if r > 0 else 0.0)
                x = cx + math.cos(angle) * (r + band)
                y = cy + math.sin(angle) * (r + band)
            break
        t -= length

    return _rotate(x, y, em.shape_rotation)


SHAPE_SAMPLERS = {
    EmitterShape.LINE: line_offset,
    EmitterShape.CIRCLE: circle_offset,
    EmitterShape.RECTANGLE: rectangle_offset,
    EmitterShape.ROUNDED_RECT: rounded_rect_offset,
}


def spawn_offset(em: EmitterConfig, rng: np.random.Generator) -> Tuple[float, float]:
    """
    Offset from the emitter position for a new particle.

    Point emitters, and shapes this module does not know, spawn at the
    emitter position itself.
    """
    sampler = SHAPE_SAMPLERS.get(em.shape)
    if sampler is None:
        return (0.0, 0.0)
    return sampler(em, rng)
