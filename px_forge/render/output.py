"""Output encoders: PNG via Pillow, JSON metadata and frame atlases, PICO-8 cartridges."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from px_forge.core.types import Frame, PlacementMetadata, RenderedShape
from px_forge.render.quantize import QuantizeConfig, quantize
from px_forge.render.sheet import crop_or_pad

log = logging.getLogger(__name__)

APP_NAME = 'px-forge'
APP_VERSION = '0.1.0'

P8_HEADER = ('pico-8 cartridge // http://www.pico-8.com', 'version 42')
P8_SIZE = 128


def scale_pixels(image: RenderedShape, factor: int) -> RenderedShape:
    """Nearest-neighbour upscale: each pixel becomes a factor x factor block."""
    if factor <= 1:
        return image
    pixels = np.repeat(np.repeat(image.pixels, factor, axis=0), factor, axis=1)
    return RenderedShape(image.name, pixels)


def to_image(image: RenderedShape, scale: int = 1) -> Image.Image:
    scaled = scale_pixels(image, scale)
    return Image.fromarray(np.ascontiguousarray(scaled.pixels, dtype=np.uint8))


def write_png(image: RenderedShape, path: str | Path, scale: int = 1) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_image(image, scale).save(path, format='PNG')
    log.debug('wrote %s', path)
    return path


def _write_json(obj: Any, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2) + '\n', encoding='utf-8')
    log.debug('wrote %s', path)
    return path


# --- Atlas ------------------------------------------------------------------


def atlas_json(frames: list[Frame], sheet_size: tuple[int, int], image_name: str, scale: int = 1) -> dict[str, Any]:
    """TexturePacker-style "hash" atlas. Coordinates are multiplied by `scale`."""
    scale = max(1, scale)
    out_frames: dict[str, Any] = {}
    for frame in sorted(frames, key=lambda f: f.name):
        w, h = frame.width * scale, frame.height * scale
        out_frames[frame.name] = {
            'frame': {'x': frame.x * scale, 'y': frame.y * scale, 'w': w, 'h': h},
            'rotated': False,
            'trimmed': False,
            'spriteSourceSize': {'x': 0, 'y': 0, 'w': w, 'h': h},
            'sourceSize': {'w': w, 'h': h},
        }
    return {
        'frames': out_frames,
        'meta': {
            'app': APP_NAME,
            'version': APP_VERSION,
            'image': image_name,
            'size': {'w': sheet_size[0] * scale, 'h': sheet_size[1] * scale},
            'scale': str(scale),
        },
    }


def write_atlas(
    frames: list[Frame], sheet_size: tuple[int, int], path: str | Path, image_name: str, scale: int = 1
) -> Path:
    return _write_json(atlas_json(frames, sheet_size, image_name, scale), path)


# --- PICO-8 -----------------------------------------------------------------


def cartridge_text(image: RenderedShape, config: QuantizeConfig | None = None) -> str:
    """A minimal .p8 cartridge holding only a __gfx__ section.

    The image is cropped or transparent-padded to 128x128 first, then each
    pixel is written as one lower-case hex digit of its palette index.
    """
    canvas = crop_or_pad(image, P8_SIZE, P8_SIZE)
    indices = quantize(canvas.pixels, config)
    lines = [*P8_HEADER, '__gfx__']
    for row in indices:
        lines.append(''.join(f'{int(i):x}' for i in row))
    return '\n'.join(lines) + '\n'


def write_p8(image: RenderedShape, path: str | Path, config: QuantizeConfig | None = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(cartridge_text(image, config), encoding='utf-8')
    log.debug('wrote %s', path)
    return path


# --- Metadata ---------------------------------------------------------------


def shape_metadata(name: str, size: tuple[int, int], tags: list[str]) -> dict[str, Any]:
    return {'name': name, 'size': list(size), 'tags': list(tags)}


def composite_metadata(meta: PlacementMetadata, tags: list[str], tags_by_name: dict[str, list[str]]) -> dict[str, Any]:
    """Prefab/map metadata: own fields plus every placed piece with its tags and positions."""
    return {
        'name': meta.name,
        'size': list(meta.size),
        'tags': list(tags),
        'grid': list(meta.grid),
        'cell_size': list(meta.cell_size),
        'shapes': [
            {
                'name': ref,
                'tags': list(tags_by_name.get(ref, [])),
                'positions': [list(pos) for pos in positions],
            }
            for ref, positions in meta.placements.items()
        ],
    }


def write_metadata(metadata: dict[str, Any], path: str | Path) -> Path:
    return _write_json(metadata, path)
