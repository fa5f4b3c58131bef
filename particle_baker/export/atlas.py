"""
Texture Atlas

Packs sprites into a square grid sheet and writes the matching text atlas
that skeletal runtimes read alongside the PNG.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from .sprites import create_particle_sprite


ATLAS_PADDING = 8


@dataclass
class AtlasRegion:
    name: str
    x: int
    y: int
    width: int
    height: int
    atlas_index: int = 0


def pack_atlas(
    entries: Sequence[Tuple[str, Image.Image]],
    sprite_size: int = 64,
    padding: int = ATLAS_PADDING,
) -> Tuple[Image.Image, List[AtlasRegion]]:
    """
    Pack (name, image) sprites into a grid.

    Each cell is sprite_size plus padding on every side. With no entries a
    default circle named sprite_1 is packed so the atlas is never empty.

    Returns:
        (atlas image, regions in entry order)
    """
    entries = list(entries)
    if not entries:
        entries = [("sprite_1", create_particle_sprite("circle", sprite_size))]

    columns = max(1, math.ceil(math.sqrt(len(entries))))
    rows = max(1, math.ceil(len(entries) / columns))
    cell = sprite_size + padding * 2

    sheet = np.zeros((rows * cell, columns * cell, 4), dtype=np.uint8)
    regions = []

    for i, (name, image) in enumerate(entries):
        col = i % columns
        row = i // columns
        x = col * cell + padding
        y = row * cell + padding

        sprite = image.convert('RGBA')
        if sprite.size != (sprite_size, sprite_size):
            sprite = sprite.resize((sprite_size, sprite_size), Image.LANCZOS)
        sheet[y:y + sprite_size, x:x + sprite_size] = np.asarray(sprite, dtype=np.uint8)

        regions.append(AtlasRegion(name, x, y, sprite_size, sprite_size))

    return Image.fromarray(sheet), regions


def atlas_text(image_name: str, size: Tuple[int, int], regions: Sequence[AtlasRegion]) -> str:
    """Text atlas describing every region of the packed sheet"""
    lines = [
        image_name,
        f"size: {size[0]},{size[1]}",
        "format: RGBA8888",
        "filter: Linear,Linear",
        "repeat: none",
    ]
    for region in regions:
        lines.extend([
            region.name,
            "  rotate: false",
            f"  xy: {region.x}, {region.y}",
            f"  size: {region.width}, {region.height}",
            f"  orig: {region.width}, {region.height}",
            "  offset: 0, 0",
            "  index: -1",
        ])
    return "\n".join(lines) + "\n"
