"""Rendering configuration."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Literal, Mapping, get_args

from termhtml.errors import ConfigError, InvalidWidthError
from termhtml.tags import TAG_KINDS, TagKind

ColorMode = Literal["none", "ansi16", "ansi256", "truecolor"]
LinkMode = Literal["inline", "footnote"]

COLOR_MODES: frozenset[str] = frozenset(get_args(ColorMode))
LINK_MODES: frozenset[str] = frozenset(get_args(LinkMode))

# Stack frames the builder and layout walks use per nesting level, and the
# frames left for callers.
_FRAMES_PER_LEVEL = 4
_RESERVED_FRAMES = 200


def max_depth_ceiling() -> int:
    """Return the deepest ``max_depth`` the recursive walks can honour under
    the current interpreter recursion limit."""
    return max(1, (sys.getrecursionlimit() - _RESERVED_FRAMES) // _FRAMES_PER_LEVEL)


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Palette:
    """Escape sequences used by the decorated renderer.

    Each entry is an ``(open, close)`` pair. ``link[0]`` is formatted with
    ``target=`` the link target. Colors are resolved separately according to
    the color mode; ``fg_close``/``bg_close`` end them.
    """

    bold: tuple[str, str] = ("\x1b[1m", "\x1b[22m")
    italic: tuple[str, str] = ("\x1b[3m", "\x1b[23m")
    underline: tuple[str, str] = ("\x1b[4m", "\x1b[24m")
    strikethrough: tuple[str, str] = ("\x1b[9m", "\x1b[29m")
    code: tuple[str, str] = ("\x1b[2m", "\x1b[22m")
    link: tuple[str, str] = ("\x1b]8;;{target}\x1b\\\x1b[4m", "\x1b[24m\x1b]8;;\x1b\\")
    image: tuple[str, str] = ("\x1b[36m", "\x1b[39m")
    fg_close: str = "\x1b[39m"
    bg_close: str = "\x1b[49m"


# ---------------------------------------------------------------------------
# RenderConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderConfig:
    """Options recognized by the builder, layout engine and renderer.

    Attributes:
        width: Target width in columns.
        color_mode: How requested colors are mapped to escape sequences.
        link_mode: ``"inline"`` annotates link text; ``"footnote"`` numbers
            links and lists their targets after the document.
        preserve_whitespace_tags: Extra element names rendered verbatim,
            like ``pre``.
        tag_overrides: Element name -> kind, consulted before the default
            table.
        max_depth: Deepest element nesting accepted before
            :class:`~termhtml.errors.NestingDepthError` is raised. Bounded
            by :func:`max_depth_ceiling`.
        palette: Escape sequences for decorated output.
    """

    width: int = 80
    color_mode: ColorMode = "none"
    link_mode: LinkMode = "inline"
    preserve_whitespace_tags: frozenset[str] = frozenset()
    tag_overrides: Mapping[str, TagKind] = field(default_factory=dict)
    max_depth: int = 100
    palette: Palette = Palette()

    def __post_init__(self) -> None:
        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width <= 0:
            raise InvalidWidthError(self.width)
        if self.color_mode not in COLOR_MODES:
            raise ConfigError(
                f"unknown color mode {self.color_mode!r}; expected one of {sorted(COLOR_MODES)}"
            )
        if self.link_mode not in LINK_MODES:
            raise ConfigError(
                f"unknown link mode {self.link_mode!r}; expected one of {sorted(LINK_MODES)}"
            )
        if self.max_depth < 1:
            raise ConfigError(f"max_depth must be at least 1, got {self.max_depth}")
        ceiling = max_depth_ceiling()
        if self.max_depth > ceiling:
            raise ConfigError(f"max_depth must be at most {ceiling}, got {self.max_depth}")
        for tag, kind in self.tag_overrides.items():
            if kind not in TAG_KINDS:
                raise ConfigError(f"unknown tag kind {kind!r} for <{tag}>")
        # Normalize tag names to lower case; frozen, so go through object.__setattr__.
        object.__setattr__(
            self,
            "preserve_whitespace_tags",
            frozenset(tag.lower() for tag in self.preserve_whitespace_tags),
        )
        object.__setattr__(
            self,
            "tag_overrides",
            {tag.lower(): kind for tag, kind in self.tag_overrides.items()},
        )
