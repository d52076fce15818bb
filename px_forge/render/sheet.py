"""Shelf packing of rendered sprites into one sheet.

Sprites are placed tallest first (ties keep input order), left to right,
starting a new row whenever the next sprite would overflow the sheet width.
The width is the next power of two covering both the widest sprite and the
square root of the total padded area, so sheets stay roughly square.
"""

from __future__ import annotations

import logging
import math

from px_forge.core.types import Frame, RenderedShape

log = logging.getLogger(__name__)


def next_power_of_two(n: int) -> int:
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


class SheetPacker:
    def __init__(self, padding: int = 0, name: str = 'sheet'):
        self.padding = max(0, padding)
        self.name = name

    def sheet_width(self, sprites: list[RenderedShape]) -> int:
        pad = self.padding
        area = sum((s.width + pad) * (s.height + pad) for s in sprites)
        widest = max(s.width for s in sprites)
        return next_power_of_two(max(widest, math.ceil(math.sqrt(area))))

    def pack(self, sprites: list[RenderedShape]) -> tuple[RenderedShape, list[Frame]]:
        """Pack `sprites`. Frames come back in input order."""
        if not sprites:
            return RenderedShape.blank(self.name, 0, 0), []

        pad = self.padding
        width = self.sheet_width(sprites)
        order = sorted(range(len(sprites)), key=lambda i: -sprites[i].height)

        positions: dict[int, tuple[int, int]] = {}
        x = y = row_height = 0
        for i in order:
            sprite = sprites[i]
            if x > 0 and x + sprite.width > width:
                y += row_height + pad
                x = row_height = 0
            positions[i] = (x, y)
            x += sprite.width + pad
            row_height = max(row_height, sprite.height)
        height = y + row_height

        sheet = RenderedShape.blank(self.name, width, height)
        frames = []
        for i, sprite in enumerate(sprites):
            fx, fy = positions[i]
            sheet.pixels[fy : fy + sprite.height, fx : fx + sprite.width] = sprite.pixels
            frames.append(Frame(sprite.name, fx, fy, sprite.width, sprite.height))

        log.debug('packed %d sprites into %dx%d', len(sprites), width, height)
        return sheet, frames


def fit_frames(frames: list[Frame], width: int, height: int) -> tuple[list[Frame], list[Frame]]:
    """Split frames into those wholly inside a width x height canvas and those cut off by it."""
    inside, truncated = [], []
    for frame in frames:
        if frame.x + frame.width <= width and frame.y + frame.height <= height:
            inside.append(frame)
        else:
            truncated.append(frame)
    return inside, truncated


def crop_or_pad(image: RenderedShape, width: int, height: int) -> RenderedShape:
    """Fit `image` into a fixed canvas, cropping overflow and padding with transparency."""
    out = RenderedShape.blank(image.name, width, height)
    w, h = min(width, image.width), min(height, image.height)
    out.pixels[:h, :w] = image.pixels[:h, :w]
    return out
