"""RGBA colour value type, hex parsing/formatting and HSL adjustments."""

from __future__ import annotations

import colorsys
import math
import re
from typing import NamedTuple

from px_forge.core.errors import ExpressionError

_HEX_DIGITS = re.compile(r'[0-9a-fA-F]+')


class Colour(NamedTuple):
    """An 8-bit RGBA colour. Equality is exact channel match."""

    r: int
    g: int
    b: int
    a: int = 255

    @classmethod
    def from_hex(cls, text: str) -> Colour:
        """Parse #RGB, #RGBA, #RRGGBB or #RRGGBBAA (the '#' is optional)."""
        raw = text.strip()
        digits = raw[1:] if raw.startswith('#') else raw
        if len(digits) in (3, 4):
            digits = ''.join(c * 2 for c in digits)
        if len(digits) not in (6, 8) or not _HEX_DIGITS.fullmatch(digits):
            raise ExpressionError(
                f'Invalid hex colour: {raw}',
                help='Use #RGB, #RGBA, #RRGGBB, or #RRGGBBAA format',
            )
        channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
        return cls(*channels)

    def to_hex(self) -> str:
        if self.a == 255:
            return f'#{self.r:02X}{self.g:02X}{self.b:02X}'
        return f'#{self.r:02X}{self.g:02X}{self.b:02X}{self.a:02X}'

    def __str__(self) -> str:
        return self.to_hex()

    @property
    def is_transparent(self) -> bool:
        return self.a == 0

    @property
    def is_opaque(self) -> bool:
        return self.a == 255


TRANSPARENT = Colour(0, 0, 0, 0)
BLACK = Colour(0, 0, 0)
WHITE = Colour(255, 255, 255)
# Placeholder for glyphs that resolve to nothing
MAGENTA = Colour(255, 0, 255)


def _round_channel(value: float) -> int:
    # Half-up, then clamp to a byte
    return max(0, min(255, int(math.floor(value + 0.5))))


def _shift_toward(value: float, percent: float) -> float:
    """Move `value` (0..1) toward 1 for positive percent, toward 0 for negative.

    The step is a fraction of the remaining range, so 100% always lands on the
    bound and 50% always covers half the distance.
    """
    delta = percent / 100.0
    if delta > 0:
        value += (1.0 - value) * delta
    else:
        value += value * delta
    return min(1.0, max(0.0, value))


def _adjust_hls(colour: Colour, lightness: float = 0.0, saturation: float = 0.0) -> Colour:
    h, l, s = colorsys.rgb_to_hls(colour.r / 255.0, colour.g / 255.0, colour.b / 255.0)
    if lightness:
        l = _shift_toward(l, lightness)
    if saturation:
        s = _shift_toward(s, saturation)
    r, g, b = colorsys.hls_to_rgb(h, l, s)
    return Colour(_round_channel(r * 255), _round_channel(g * 255), _round_channel(b * 255), colour.a)


def lighten(colour: Colour, percent: float) -> Colour:
    return _adjust_hls(colour, lightness=percent)


def darken(colour: Colour, percent: float) -> Colour:
    return _adjust_hls(colour, lightness=-percent)


def saturate(colour: Colour, percent: float) -> Colour:
    return _adjust_hls(colour, saturation=percent)


def desaturate(colour: Colour, percent: float) -> Colour:
    return _adjust_hls(colour, saturation=-percent)


def mix(a: Colour, b: Colour, factor: float) -> Colour:
    """Blend all four channels; factor 0 gives `a`, 1 gives `b`."""
    factor = min(1.0, max(0.0, factor))
    inv = 1.0 - factor
    return Colour(*(_round_channel(x * inv + y * factor) for x, y in zip(a, b)))


def with_alpha(colour: Colour, percent: float) -> Colour:
    return colour._replace(a=_round_channel(percent / 100.0 * 255.0))
