"""Renderer: tagged lines -> plain text, terminal escapes or span records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Sequence

from termhtml.colors import resolve_color
from termhtml.config import RenderConfig
from termhtml.lines import Annotation, ImageAlt, LinkTarget, Style, TaggedLine

_OPEN = "open"
_CLOSE = "close"
_TEXT = "text"

# Control characters cannot appear inside an OSC 8 target.
_UNSAFE_TARGET_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_STYLE_FLAGS = ("bold", "italic", "underline", "strikethrough", "code")

Event = tuple[Literal["open", "close", "text"], object]


@dataclass(frozen=True)
class AnnotatedSpan:
    """An annotation over ``text[start:end]`` of a rendered line."""

    start: int
    end: int
    annotation: Annotation


@dataclass(frozen=True)
class RenderedLine:
    text: str
    spans: tuple[AnnotatedSpan, ...] = ()


def _common_prefix(stack: Sequence[Annotation], annotations: Sequence[Annotation]) -> int:
    keep = 0
    while keep < len(stack) and keep < len(annotations) and stack[keep] == annotations[keep]:
        keep += 1
    return keep


def span_events(line: TaggedLine) -> Iterator[Event]:
    """Yield open/close/text events for *line*.

    Annotations shared with the previous fragment stay open; the rest are
    closed innermost first. Every span is closed by the end of the line.
    """
    stack: list[Annotation] = []
    for frag in line.fragments:
        keep = _common_prefix(stack, frag.annotations)
        while len(stack) > keep:
            yield _CLOSE, stack.pop()
        for annotation in frag.annotations[keep:]:
            stack.append(annotation)
            yield _OPEN, annotation
        yield _TEXT, frag.text
    while stack:
        yield _CLOSE, stack.pop()


def sanitize_target(target: str) -> str:
    return _UNSAFE_TARGET_RE.sub("", target)


class Renderer:
    """Serializes laid out lines in one of three forms."""

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config = config or RenderConfig()

    # -- plain --------------------------------------------------------------

    def plain(self, lines: Iterable[TaggedLine]) -> str:
        """Text only; every line ends with ``\\n``."""
        return "".join(line.text + "\n" for line in lines)

    # -- decorated ----------------------------------------------------------

    def decorated(self, lines: Iterable[TaggedLine]) -> str:
        """Text with terminal escape sequences; every line ends with ``\\n``."""
        return "".join(self.decorate_line(line) + "\n" for line in lines)

    def decorate_line(self, line: TaggedLine) -> str:
        out: list[str] = []
        active: list[Annotation] = []
        closed = False
        for kind, value in span_events(line):
            if kind == _CLOSE:
                active.pop()
                out.append(self._close(value))
                closed = True
                continue
            if closed:
                # Closing codes may have reset attributes of outer spans.
                out.extend(self._open(annotation) for annotation in active)
                closed = False
            if kind == _OPEN:
                active.append(value)
                out.append(self._open(value))
            else:
                out.append(value)
        return "".join(out)

    def _open(self, annotation: Annotation) -> str:
        palette = self.config.palette
        if isinstance(annotation, LinkTarget):
            return palette.link[0].format(target=sanitize_target(annotation.target))
        if isinstance(annotation, ImageAlt):
            return palette.image[0]
        codes = [getattr(palette, flag)[0] for flag in _STYLE_FLAGS if getattr(annotation, flag)]
        codes.extend(self._colors(annotation))
        return "".join(codes)

    def _close(self, annotation: Annotation) -> str:
        palette = self.config.palette
        if isinstance(annotation, LinkTarget):
            return palette.link[1]
        if isinstance(annotation, ImageAlt):
            return palette.image[1]
        fg, bg = self._colors(annotation)
        codes = [palette.bg_close] if bg else []
        if fg:
            codes.append(palette.fg_close)
        codes.extend(getattr(palette, flag)[1] for flag in reversed(_STYLE_FLAGS) if getattr(annotation, flag))
        return "".join(codes)

    def _colors(self, style: Style) -> tuple[str, str]:
        mode = self.config.color_mode
        fg = resolve_color(style.fg, mode) if style.fg else None
        bg = resolve_color(style.bg, mode, background=True) if style.bg else None
        return fg or "", bg or ""

    # -- structured ---------------------------------------------------------

    def structured(self, lines: Iterable[TaggedLine]) -> list[RenderedLine]:
        """Text plus annotation spans (character offsets), no escapes."""
        return [self.structure_line(line) for line in lines]

    def structure_line(self, line: TaggedLine) -> RenderedLine:
        spans: list[AnnotatedSpan] = []
        starts: list[int] = []
        position = 0
        for kind, value in span_events(line):
            if kind == _OPEN:
                starts.append(position)
            elif kind == _CLOSE:
                spans.append(AnnotatedSpan(starts.pop(), position, value))
            else:
                position += len(value)
        spans.sort(key=lambda span: (span.start, -span.end))
        return RenderedLine(line.text, tuple(spans))


def links(lines: Iterable[RenderedLine]) -> list[tuple[int, int, int, str]]:
    """Return ``(line, start, end, target)`` for every link span."""
    found: list[tuple[int, int, int, str]] = []
    for number, line in enumerate(lines):
        for span in line.spans:
            if isinstance(span.annotation, LinkTarget):
                found.append((number, span.start, span.end, span.annotation.target))
    return found
