"""
Procedural Particle Sprites

White RGBA sprites, tinted at runtime by the slot color. Soft shapes
(glow, smoke, needle) are built as numpy alpha masks; hard shapes are drawn
with PIL ImageDraw.
"""

import base64
import io
import logging
import math
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import numpy as np
from PIL import Image, ImageDraw


logger = logging.getLogger(__name__)

DEFAULT_SPRITE_SIZE = 64


# =============================================================================
# Helpers
# =============================================================================

def _blank(size: int) -> Image.Image:
    return Image.new('RGBA', (size, size), (255, 255, 255, 0))


def _from_alpha(alpha: np.ndarray) -> Image.Image:
    """White image with the given 0-1 alpha mask"""
    h, w = alpha.shape
    pixels = np.full((h, w, 4), 255, dtype=np.uint8)
    pixels[..., 3] = np.clip(alpha * 255, 0, 255).astype(np.uint8)
    return Image.fromarray(pixels)


def _radial_distance(size: int, cx: float, cy: float) -> np.ndarray:
    ys, xs = np.mgrid[0:size, 0:size].astype(np.float32) + 0.5
    return np.sqrt((xs - cx) ** 2 + (ys - cy) ** 2)


def _gradient(t: np.ndarray, stops: List[Tuple[float, float]]) -> np.ndarray:
    """Piecewise-linear alpha over normalized distance t"""
    positions = [s[0] for s in stops]
    values = [s[1] for s in stops]
    return np.interp(t, positions, values)


def _regular_polygon(center: float, radius: float, points: int, start: float = -math.pi / 2):
    return [
        (center + math.cos(start + i * 2 * math.pi / points) * radius,
         center + math.sin(start + i * 2 * math.pi / points) * radius)
        for i in range(points)
    ]


# =============================================================================
# Shapes
# =============================================================================

def draw_circle(size: int) -> Image.Image:
    img = _blank(size)
    radius = size / 2 - 2
    c = size / 2
    ImageDraw.Draw(img).ellipse([c - radius, c - radius, c + radius, c + radius], fill=(255, 255, 255, 255))
    return img


def draw_glow(size: int) -> Image.Image:
    radius = size / 2 - 2
    t = _radial_distance(size, size / 2, size / 2) / radius
    alpha = _gradient(t, [(0.0, 1.0), (0.5, 0.8), (1.0, 0.0)])
    alpha[t > 1.0] = 0.0
    return _from_alpha(alpha)


def draw_star(size: int) -> Image.Image:
    img = _blank(size)
    c = size / 2
    outer = size / 2 - 2
    inner = outer * 0.5
    spikes = 5
    points = []
    for i in range(spikes * 2):
        r = outer if i % 2 == 0 else inner
        angle = i * math.pi / spikes - math.pi / 2
        points.append((c + math.cos(angle) * r, c + math.sin(angle) * r))
    ImageDraw.Draw(img).polygon(points, fill=(255, 255, 255, 255))
    return img


def draw_polygon(size: int) -> Image.Image:
    img = _blank(size)
    ImageDraw.Draw(img).polygon(_regular_polygon(size / 2, size / 2 - 2, 6), fill=(255, 255, 255, 255))
    return img


def draw_needle(size: int) -> Image.Image:
    c = size / 2
    half_w = size * 0.08
    half_l = size * 0.4

    shape = Image.new('L', (size, size), 0)
    ImageDraw.Draw(shape).rounded_rectangle(
        [c - half_w, c - half_l, c + half_w, c + half_l], radius=half_w, fill=255
    )

    ys = np.arange(size, dtype=np.float32) + 0.5
    t = (ys - (c - half_l)) / (2 * half_l)
    fade = _gradient(t, [(0.0, 0.0), (0.25, 0.4), (0.5, 1.0), (0.75, 0.4), (1.0, 0.0)])
    alpha = (np.asarray(shape, dtype=np.float32) / 255.0) * fade[:, None]
    return _from_alpha(alpha)


def draw_raindrop(size: int) -> Image.Image:
    img = _blank(size)
    c = size / 2
    r = size * 0.35
    # Two quadratic curves from the top tip to the bottom point
    points = []
    steps = 24
    for side in (1, -1):
        for i in range(steps + 1):
            t = i / steps if side == 1 else 1 - i / steps
            # Control point at (c + side*r, c)
            x = (1 - t) ** 2 * c + 2 * (1 - t) * t * (c + side * r) + t ** 2 * c
            y = (1 - t) ** 2 * (c - r) + 2 * (1 - t) * t * c + t ** 2 * (c + r)
            points.append((x, y))
    ImageDraw.Draw(img).polygon(points, fill=(255, 255, 255, 255))
    return img


def draw_snowflake(size: int) -> Image.Image:
    img = _blank(size)
    draw = ImageDraw.Draw(img)
    c = size / 2
    arm = size * 0.28
    width = max(1, int(round(size * 0.03)))

    def rotated(x: float, y: float, angle: float) -> Tuple[float, float]:
        return (c + x * math.cos(angle) - y * math.sin(angle),
                c + x * math.sin(angle) + y * math.cos(angle))

    for i in range(3):
        for angle in (math.pi / 3 * i, math.pi / 3 * i + math.pi / 6):
            draw.line([rotated(0, -arm, angle), rotated(0, arm, angle)], fill=(255, 255, 255, 255), width=width)
            draw.line([rotated(-arm * 0.6, -arm * 0.2, angle), rotated(arm * 0.6, arm * 0.2, angle)],
                      fill=(255, 255, 255, 255), width=width)
    return img


def draw_smoke(size: int) -> Image.Image:
    c = size / 2
    radius = size * 0.42

    t = (_radial_distance(size, c, c) - radius * 0.1) / (radius * 0.9)
    base = _gradient(np.clip(t, 0, 1), [(0.0, 0.45), (0.5, 0.2), (1.0, 0.0)])
    base[_radial_distance(size, c, c) > radius] = 0.0

    # Second puff, same gradient, composited at half opacity
    puff_dist = _radial_distance(size, c - radius * 0.25, c - radius * 0.2)
    puff = np.where(puff_dist <= radius * 0.45, base * 0.5, 0.0)

    alpha = base + puff * (1 - base)
    return _from_alpha(alpha)


SPRITE_DRAWERS: Dict[str, Callable[[int], Image.Image]] = {
    'circle': draw_circle,
    'glow': draw_glow,
    'star': draw_star,
    'polygon': draw_polygon,
    'needle': draw_needle,
    'raindrop': draw_raindrop,
    'snowflake': draw_snowflake,
    'smoke': draw_smoke,
}


def create_particle_sprite(kind: str, size: int = DEFAULT_SPRITE_SIZE) -> Image.Image:
    """
    Render a procedural particle sprite.

    Args:
        kind: One of SPRITE_DRAWERS; unknown kinds render a circle
        size: Edge length in pixels

    Returns:
        RGBA PIL Image
    """
    drawer = SPRITE_DRAWERS.get(kind)
    if drawer is None:
        logger.debug("Unknown sprite kind '%s', using circle", kind)
        drawer = draw_circle
    return drawer(size)


def load_custom_sprite(data: str) -> Image.Image:
    """
    Load a custom sprite from a base64 data URL or a file path.

    Raises:
        FileNotFoundError: If a path is given and does not exist
    """
    if data.startswith('data:'):
        _, _, encoded = data.partition(',')
        img = Image.open(io.BytesIO(base64.b64decode(encoded)))
    else:
        img = Image.open(Path(data))
    return img.convert('RGBA')
