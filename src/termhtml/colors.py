"""Color value parsing and terminal color resolution.

:func:`resolve_color` maps an arbitrary CSS color value to the nearest color
representable in a :data:`~termhtml.config.ColorMode`. It is a pure function
of its arguments and is cached.
"""

from __future__ import annotations

import re
from functools import lru_cache

from termhtml.config import ColorMode

RGB = tuple[int, int, int]

_HEX_RE = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$")
_RGB_RE = re.compile(r"^rgba?\(\s*([^)]*)\)$")

NAMED_COLORS: dict[str, RGB] = {
    "black": (0, 0, 0),
    "silver": (192, 192, 192),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "white": (255, 255, 255),
    "maroon": (128, 0, 0),
    "red": (255, 0, 0),
    "purple": (128, 0, 128),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "olive": (128, 128, 0),
    "yellow": (255, 255, 0),
    "navy": (0, 0, 128),
    "blue": (0, 0, 255),
    "teal": (0, 128, 128),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "orange": (255, 165, 0),
    "darkorange": (255, 140, 0),
    "gold": (255, 215, 0),
    "pink": (255, 192, 203),
    "hotpink": (255, 105, 180),
    "brown": (165, 42, 42),
    "chocolate": (210, 105, 30),
    "tan": (210, 180, 140),
    "coral": (255, 127, 80),
    "salmon": (250, 128, 114),
    "crimson": (220, 20, 60),
    "tomato": (255, 99, 71),
    "indigo": (75, 0, 130),
    "violet": (238, 130, 238),
    "orchid": (218, 112, 214),
    "plum": (221, 160, 221),
    "lavender": (230, 230, 250),
    "turquoise": (64, 224, 208),
    "skyblue": (135, 206, 235),
    "steelblue": (70, 130, 180),
    "royalblue": (65, 105, 225),
    "darkblue": (0, 0, 139),
    "lightblue": (173, 216, 230),
    "darkgreen": (0, 100, 0),
    "lightgreen": (144, 238, 144),
    "forestgreen": (34, 139, 34),
    "darkred": (139, 0, 0),
    "darkgray": (169, 169, 169),
    "darkgrey": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "lightgrey": (211, 211, 211),
    "dimgray": (105, 105, 105),
    "dimgrey": (105, 105, 105),
    "beige": (245, 245, 220),
    "ivory": (255, 255, 240),
    "khaki": (240, 230, 140),
}

# xterm's default 16-color palette.
ANSI16: tuple[RGB, ...] = (
    (0, 0, 0), (205, 0, 0), (0, 205, 0), (205, 205, 0),
    (0, 0, 238), (205, 0, 205), (0, 205, 205), (229, 229, 229),
    (127, 127, 127), (255, 0, 0), (0, 255, 0), (255, 255, 0),
    (92, 92, 255), (255, 0, 255), (0, 255, 255), (255, 255, 255),
)

_CUBE_LEVELS = (0, 95, 135, 175, 215, 255)


def parse_color(value: str) -> RGB | None:
    """Parse ``#rgb``, ``#rrggbb``, ``rgb()``/``rgba()`` or a named color."""
    value = value.strip().lower()
    if not value:
        return None

    if match := _HEX_RE.match(value):
        hexes = match.group(1)
        if len(hexes) == 3:
            hexes = "".join(2 * ch for ch in hexes)
        return (int(hexes[0:2], 16), int(hexes[2:4], 16), int(hexes[4:6], 16))

    if match := _RGB_RE.match(value):
        parts = [p.strip() for p in match.group(1).replace("/", ",").split(",")]
        if len(parts) < 3:
            return None
        channels: list[int] = []
        for part in parts[:3]:
            try:
                if part.endswith("%"):
                    channel = round(float(part[:-1]) * 255 / 100)
                else:
                    channel = round(float(part))
            except ValueError:
                return None
            channels.append(min(255, max(0, channel)))
        return (channels[0], channels[1], channels[2])

    return NAMED_COLORS.get(value)


def _distance(a: RGB, b: RGB) -> int:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2


def nearest_ansi16(rgb: RGB) -> int:
    """Index (0-15) of the closest basic terminal color."""
    return min(range(16), key=lambda i: (_distance(rgb, ANSI16[i]), i))


def _nearest_level(channel: int) -> int:
    return min(range(6), key=lambda i: abs(_CUBE_LEVELS[i] - channel))


def nearest_ansi256(rgb: RGB) -> int:
    """Index (16-255) of the closest xterm-256 cube or grayscale color."""
    r, g, b = (_nearest_level(c) for c in rgb)
    cube_index = 16 + 36 * r + 6 * g + b
    cube_rgb = (_CUBE_LEVELS[r], _CUBE_LEVELS[g], _CUBE_LEVELS[b])

    average = sum(rgb) // 3
    gray_step = min(23, max(0, round((average - 8) / 10)))
    gray_value = 8 + 10 * gray_step
    gray_rgb = (gray_value, gray_value, gray_value)

    if _distance(rgb, gray_rgb) < _distance(rgb, cube_rgb):
        return 232 + gray_step
    return cube_index


@lru_cache(maxsize=256)
def resolve_color(value: str, mode: ColorMode, background: bool = False) -> str | None:
    """Return the SGR escape selecting *value* under *mode*, or ``None``.

    ``None`` means "leave the terminal's color alone": color is disabled or
    the value is not a recognizable color.
    """
    if mode == "none":
        return None
    rgb = parse_color(value)
    if rgb is None:
        return None

    if mode == "ansi16":
        index = nearest_ansi16(rgb)
        base = 40 if background else 30
        code = base + index if index < 8 else base + 60 + (index - 8)
        return f"\x1b[{code}m"

    selector = 48 if background else 38
    if mode == "ansi256":
        return f"\x1b[{selector};5;{nearest_ansi256(rgb)}m"
    return f"\x1b[{selector};2;{rgb[0]};{rgb[1]};{rgb[2]}m"
