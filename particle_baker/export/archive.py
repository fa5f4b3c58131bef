"""
Export Archive

Writes the animation document, text atlas and atlas PNG into a single zip,
and runs the full bake -> document -> atlas -> zip pipeline.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image

from ..core.settings import EffectSettings
from .atlas import atlas_text, pack_atlas
from .baking import bake
from .document import AnimationDocument, build_document
from .sprites import create_particle_sprite, load_custom_sprite


logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "particle"


def emitter_sprites(settings: EffectSettings) -> Tuple[List[Tuple[str, Image.Image]], Dict[str, str]]:
    """
    One sprite per enabled emitter.

    Returns:
        ([(region name, image)], emitter id -> region name)
    """
    entries = []
    names = {}
    for i, em in enumerate(settings.emitters):
        if not em.enabled:
            continue
        name = f"sprite_{i + 1}"
        if em.particle_sprite == 'custom' and em.custom_sprite_data:
            image = load_custom_sprite(em.custom_sprite_data)
        else:
            image = create_particle_sprite(em.particle_sprite)
        entries.append((name, image))
        names[em.id] = name
    return entries, names


def write_export(
    path: str | Path,
    document: AnimationDocument,
    atlas_image: Image.Image,
    atlas_txt: str,
    name: str = DEFAULT_EXPORT_NAME,
) -> Path:
    """
    Write <name>.json, <name>.atlas and <name>.png into a zip.

    Returns:
        Path to the written archive
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    png = io.BytesIO()
    atlas_image.save(png, 'PNG')

    with zipfile.ZipFile(path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(f"{name}.json", document.to_json())
        archive.writestr(f"{name}.atlas", atlas_txt)
        archive.writestr(f"{name}.png", png.getvalue())

    return path


def export_effect(
    settings: EffectSettings,
    path: str | Path,
    seed: Optional[int] = None,
    name: str = DEFAULT_EXPORT_NAME,
) -> Path:
    """
    Bake an effect and write the complete export archive.

    Args:
        settings: Effect to export
        path: Destination .zip
        seed: Optional seed for a reproducible bake
        name: Base name of the files inside the archive
    """
    result = bake(settings, seed=seed)

    entries, sprite_names = emitter_sprites(settings)
    document = build_document(result, settings, sprite_names)

    image, regions = pack_atlas(entries)
    text = atlas_text(f"{name}.png", image.size, regions)

    out = write_export(path, document, image, text, name)
    logger.info("Wrote %s (%d animation(s))", out, len(document.animations))
    return out
