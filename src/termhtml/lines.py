"""Annotated output lines.

A :class:`TaggedLine` is an ordered run of :class:`Fragment` objects, each a
piece of text plus the annotations active over it, outermost first. Layout
produces them, the renderer consumes them. They are plain immutable values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from termhtml.utils import visible_width


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Style:
    """Text styling: flag set plus optional colors (raw CSS color values)."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    code: bool = False
    fg: str | None = None
    bg: str | None = None

    @property
    def is_plain(self) -> bool:
        return self == _PLAIN_STYLE


_PLAIN_STYLE = Style()


@dataclass(frozen=True)
class LinkTarget:
    """Marks text belonging to a hyperlink."""

    target: str


@dataclass(frozen=True)
class ImageAlt:
    """Marks an image placeholder."""

    alt: str


Annotation = Union[LinkTarget, Style, ImageAlt]


# ---------------------------------------------------------------------------
# Fragment / TaggedLine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Fragment:
    text: str
    annotations: tuple[Annotation, ...] = ()

    @property
    def width(self) -> int:
        return visible_width(self.text)


@dataclass(frozen=True)
class TaggedLine:
    """One output line.

    ``verbatim`` lines carry layout structure (table grids, preformatted text,
    rules, list markers and quote prefixes) and are never re-flowed by
    :func:`~termhtml.layout.rewrap`.
    """

    fragments: tuple[Fragment, ...] = ()
    verbatim: bool = False

    @classmethod
    def build(cls, fragments: Iterable[Fragment], *, verbatim: bool = False) -> TaggedLine:
        """Create a line, dropping empty fragments and coalescing neighbours
        whose annotations are identical."""
        merged: list[Fragment] = []
        for frag in fragments:
            if not frag.text:
                continue
            if merged and merged[-1].annotations == frag.annotations:
                merged[-1] = Fragment(merged[-1].text + frag.text, frag.annotations)
            else:
                merged.append(frag)
        return cls(tuple(merged), verbatim)

    @classmethod
    def plain(cls, text: str) -> TaggedLine:
        return cls.build([Fragment(text)])

    @property
    def text(self) -> str:
        return "".join(f.text for f in self.fragments)

    @property
    def width(self) -> int:
        return sum(f.width for f in self.fragments)

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    def padded(self, width: int) -> TaggedLine:
        """Right-pad with unannotated spaces to *width* columns."""
        missing = width - self.width
        if missing <= 0:
            return self
        return TaggedLine.build(self.fragments + (Fragment(" " * missing),), verbatim=self.verbatim)

    def prefixed(self, prefix: str) -> TaggedLine:
        """Prepend *prefix*; the result is verbatim."""
        return TaggedLine.build((Fragment(prefix),) + self.fragments, verbatim=True)


def lines_text(lines: Iterable[TaggedLine]) -> list[str]:
    """Return the visible text of each line."""
    return [line.text for line in lines]
