"""RGBA colour helpers shared by the indication components."""

from __future__ import annotations

import string
from typing import Sequence

Color = tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)
DEFAULT_WARNING_COLOR: Color = (255, 110, 64, 255)


def parse_hex_color(value: str) -> Color:
    """Parse ``#RRGGBB`` or ``#RRGGBBAA`` into an RGBA tuple."""

    if not isinstance(value, str) or not value.strip():
        raise ValueError("Colour must be a hex string in RRGGBB or RRGGBBAA format")
    candidate = value.strip()
    if candidate.startswith("#"):
        candidate = candidate[1:]
    if len(candidate) not in (6, 8) or any(ch not in string.hexdigits for ch in candidate):
        raise ValueError("Colour must be a hex string in RRGGBB or RRGGBBAA format")
    red = int(candidate[0:2], 16)
    green = int(candidate[2:4], 16)
    blue = int(candidate[4:6], 16)
    alpha = int(candidate[6:8], 16) if len(candidate) == 8 else 255
    return red, green, blue, alpha


def coerce_color(value: object) -> Color:
    """Accept a hex string or a 3/4 item sequence of 0-255 components."""

    if isinstance(value, str):
        return parse_hex_color(value)
    if not isinstance(value, Sequence) or len(value) not in (3, 4):
        raise ValueError("Colour must include red, green, blue and optional alpha values")
    parsed: list[int] = []
    for component in value:
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            raise ValueError("Colour components must be numbers")
        number = int(round(component))
        if not 0 <= number <= 255:
            raise ValueError("Colour components must be between 0 and 255")
        parsed.append(number)
    if len(parsed) == 3:
        parsed.append(255)
    return parsed[0], parsed[1], parsed[2], parsed[3]


def format_hex_color(color: Color) -> str:
    red, green, blue, alpha = color
    if alpha == 255:
        return f"#{red:02X}{green:02X}{blue:02X}"
    return f"#{red:02X}{green:02X}{blue:02X}{alpha:02X}"


__all__ = [
    "Color",
    "WHITE",
    "DEFAULT_WARNING_COLOR",
    "coerce_color",
    "format_hex_color",
    "parse_hex_color",
]
