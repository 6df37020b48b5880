"""
Color helpers: hex parsing, hex -> HSL and shade palettes derived from a base color.
Lightness steps match the front end's `brand-50` .. `brand-900` Tailwind scale.
"""
from __future__ import annotations

import math

from models_branding import HEX_COLOR_RE, PALETTE_SHADES

PALETTE_LIGHTNESS: dict[int, int] = {
    50: 95,
    100: 85,
    200: 75,
    300: 65,
    400: 55,
    500: 45,  # base
    600: 38,
    700: 30,
    800: 22,
    900: 14,
}


def _round_half_up(value: float) -> int:
    # Browser Math.round semantics, not banker's rounding
    return int(math.floor(value + 0.5))


def normalize_hex(value: str | None) -> str | None:
    """Return the trimmed color if it is #rgb or #rrggbb, else None."""
    if value is None:
        return None
    color = str(value).strip()
    if not HEX_COLOR_RE.match(color):
        return None
    return color


def _expand_hex(color: str) -> str:
    digits = color.lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return digits


def hex_to_hsl(color: str) -> tuple[int, int, int]:
    """Convert #rgb / #rrggbb to (hue degrees, saturation %, lightness %)."""
    if normalize_hex(color) is None:
        raise ValueError(f"Not a hex color: {color!r}")
    digits = _expand_hex(color.strip())
    r = int(digits[0:2], 16) / 255
    g = int(digits[2:4], 16) / 255
    b = int(digits[4:6], 16) / 255

    high = max(r, g, b)
    low = min(r, g, b)
    lightness = (high + low) / 2

    if high == low:
        hue = saturation = 0.0
    else:
        d = high - low
        saturation = d / (2 - high - low) if lightness > 0.5 else d / (high + low)
        if high == r:
            hue = ((g - b) / d + (6 if g < b else 0)) / 6
        elif high == g:
            hue = ((b - r) / d + 2) / 6
        else:
            hue = ((r - g) / d + 4) / 6

    return (
        _round_half_up(hue * 360),
        _round_half_up(saturation * 100),
        _round_half_up(lightness * 100),
    )


def generate_color_palette(base_color: str) -> dict[int, str]:
    """Shades 50..900 sharing the base color's hue and saturation."""
    h, s, _ = hex_to_hsl(base_color)
    return {shade: f"hsl({h}, {s}%, {PALETTE_LIGHTNESS[shade]}%)" for shade in PALETTE_SHADES}
