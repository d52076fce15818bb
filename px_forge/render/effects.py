"""Shader post-processing over RGB channels of non-transparent pixels.

Effects accumulate in float and are clamped and rounded to bytes once at the
end. Alpha is never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from px_forge.core.assets import Brightness, Contrast, Effect, Scanlines, Vignette
from px_forge.core.types import RenderedShape

log = logging.getLogger(__name__)


def _vignette(rgb: np.ndarray, strength: float) -> None:
    height, width = rgb.shape[:2]
    cx, cy = width / 2.0, height / 2.0
    ys, xs = np.mgrid[0:height, 0:width]
    dist = np.hypot(xs + 0.5 - cx, ys + 0.5 - cy)
    dmax = np.hypot(cx, cy)
    if dmax == 0:
        return
    rgb *= (1.0 - strength * (dist / dmax) ** 2)[..., np.newaxis]


def _scanlines(rgb: np.ndarray, opacity: float, gap: int) -> None:
    gap = max(1, gap)
    rows = np.arange(rgb.shape[0]) % gap == gap - 1
    rgb[rows] *= 1.0 - opacity


def apply_effects(image: RenderedShape, effects: Iterable[Effect]) -> RenderedShape:
    """Return a new image with `effects` applied in order."""
    effects = list(effects)
    if not effects or image.width == 0 or image.height == 0:
        return image

    rgb = image.pixels[..., :3].astype(np.float64)
    for effect in effects:
        match effect:
            case Vignette(strength):
                _vignette(rgb, strength)
            case Scanlines(opacity, gap):
                _scanlines(rgb, opacity, gap)
            case Brightness(amount):
                rgb += amount * 255.0
            case Contrast(amount):
                rgb = (rgb - 128.0) * (1.0 + amount) + 128.0
        log.debug('%s: applied %s', image.name, effect.type)

    out = image.pixels.copy()
    visible = out[..., 3] > 0
    out[visible, :3] = np.clip(np.rint(rgb[visible]), 0, 255).astype(np.uint8)
    return RenderedShape(image.name, out)
