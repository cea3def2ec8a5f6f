"""Layout engine: render tree -> width-constrained tagged lines.

Inline content is flattened into words and wrapped greedily; block content is
stacked vertically with collapsed blank-line margins. Lists and tables lay out
their children through the engine at reduced widths (see
:mod:`termhtml.lists` and :mod:`termhtml.tables`).
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from termhtml.config import RenderConfig
from termhtml.errors import InvalidWidthError, NestingDepthError
from termhtml.lines import Annotation, Fragment, ImageAlt, LinkTarget, TaggedLine
from termhtml.lists import layout_list, prefix_lines
from termhtml.nodes import (
    Block,
    BlockQuote,
    HorizontalRule,
    Image,
    Inline,
    LineBreak,
    Link,
    List,
    ListItem,
    Preformatted,
    RenderNode,
    StyleContext,
    Table,
    TableCell,
    TableRow,
    Text,
)
from termhtml.tables import TableLayout
from termhtml.utils import visible_width

logger = logging.getLogger(__name__)

RULE_CHAR = "─"
QUOTE_PREFIX = "> "

_SPLIT_RE = re.compile(r"([ \t\n\r\f]+)")


def _check_width(width: int) -> None:
    if isinstance(width, bool) or not isinstance(width, int) or width <= 0:
        raise InvalidWidthError(width)


# ---------------------------------------------------------------------------
# Line builder
# ---------------------------------------------------------------------------


class _Flow:
    """Accumulates words and blocks into lines of at most *width* columns.

    A word is every piece of text not separated by whitespace, so styled runs
    glue together across element boundaries. Blank-line requests from
    adjacent blocks collapse into one and are never emitted at the start or
    end of the flow.
    """

    def __init__(self, width: int) -> None:
        self.width = width
        self.lines: list[TaggedLine] = []
        self._line: list[Fragment] = []
        self._line_width = 0
        self._word: list[Fragment] = []
        self._word_width = 0
        self._space: tuple[Annotation, ...] | None = None
        self._blank_pending = False

    # -- inline -------------------------------------------------------------

    def add_text(self, text: str, annotations: tuple[Annotation, ...]) -> None:
        for index, piece in enumerate(_SPLIT_RE.split(text)):
            if not piece:
                continue
            if index % 2:
                self._end_word()
                if self._line and self._space is None:
                    self._space = annotations
            else:
                self._word.append(Fragment(piece, annotations))
                self._word_width += visible_width(piece)

    def add_atom(self, text: str, annotations: tuple[Annotation, ...]) -> None:
        """Append an indivisible piece to the current word."""
        self._word.append(Fragment(text, annotations))
        self._word_width += visible_width(text)

    def line_break(self) -> None:
        self._end_word()
        if self._line:
            self._finish_line()
        else:
            self._emit(TaggedLine())

    def _end_word(self) -> None:
        if not self._word:
            return
        if self._line:
            needed = self._word_width + (1 if self._space is not None else 0)
            if self._line_width + needed <= self.width:
                if self._space is not None:
                    self._line.append(Fragment(" ", self._space))
                    self._line_width += 1
            else:
                self._finish_line()
        self._line.extend(self._word)
        self._line_width += self._word_width
        self._word = []
        self._word_width = 0
        self._space = None

    def _finish_line(self) -> None:
        self._emit(TaggedLine.build(self._line))
        self._line = []
        self._line_width = 0
        self._space = None

    # -- blocks -------------------------------------------------------------

    def flush(self) -> None:
        """End the current inline run."""
        self._end_word()
        if self._line:
            self._finish_line()
        self._space = None

    def request_blank(self) -> None:
        self.flush()
        if self.lines:
            self._blank_pending = True

    def add_lines(self, lines: Iterable[TaggedLine], *, margin: bool = False) -> None:
        """Place already laid out block lines."""
        self.flush()
        if margin:
            self.request_blank()
        for line in lines:
            self._emit(line)
        if margin:
            self.request_blank()

    def _emit(self, line: TaggedLine) -> None:
        if self._blank_pending:
            self.lines.append(TaggedLine())
            self._blank_pending = False
        self.lines.append(line)


# ---------------------------------------------------------------------------
# LayoutEngine
# ---------------------------------------------------------------------------


class LayoutEngine:
    """Lays out render trees for one configuration.

    State is per :meth:`layout` call: the footnote registry, the table cell
    cache and the measuring flag used while negotiating column widths.
    """

    # Width used to find a cell's preferred (unwrapped) width.
    UNBOUNDED_WIDTH = 1 << 20

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config = config or RenderConfig()
        self._footnotes: dict[str, int] = {}
        self._cells: dict[tuple[int, int, bool], tuple[TableCell, list[TaggedLine]]] = {}
        self._measuring = False

    @property
    def footnote_mode(self) -> bool:
        return self.config.link_mode == "footnote"

    def layout(self, node: RenderNode, width: int) -> list[TaggedLine]:
        """Lay out *node* at *width* columns, followed by any footnotes."""
        _check_width(width)
        self._footnotes = {}
        self._cells = {}
        self._measuring = False

        # The root block is the scope itself; it does not count as nesting.
        roots = node.children if isinstance(node, Block) and not node.margin else (node,)
        lines = self.layout_children(roots, width, 0)
        if self._footnotes:
            logger.debug("appending %d footnotes", len(self._footnotes))
            if lines:
                lines.append(TaggedLine())
            lines.extend(self._footnote_lines(width))
        return lines

    def layout_children(self, children: Sequence[RenderNode], width: int, depth: int) -> list[TaggedLine]:
        """Lay out *children* as one block scope at *width* columns."""
        flow = _Flow(max(1, width))
        for child in children:
            self._walk(child, flow, depth)
        flow.flush()
        return flow.lines

    def layout_cell(self, cell: TableCell, width: int, depth: int, *, measuring: bool = False) -> list[TaggedLine]:
        """Lay out a table cell's content, memoized per call."""
        measuring = measuring or self._measuring
        key = (id(cell), width, measuring)
        cached = self._cells.get(key)
        if cached is not None:
            return cached[1]

        previous = self._measuring
        self._measuring = measuring
        try:
            lines = self.layout_children(cell.children, width, depth)
        finally:
            self._measuring = previous
        self._cells[key] = (cell, lines)
        return lines

    # -- tree walk ----------------------------------------------------------

    def _annotations(self, ctx: StyleContext) -> tuple[Annotation, ...]:
        return ctx.annotations(include_link=not self.footnote_mode)

    def _enter(self, depth: int) -> int:
        depth += 1
        if depth > self.config.max_depth:
            raise NestingDepthError(depth, self.config.max_depth)
        return depth

    def _walk(self, node: RenderNode, flow: _Flow, depth: int) -> None:
        if isinstance(node, Text):
            flow.add_text(node.text, self._annotations(node.style))
        elif isinstance(node, Image):
            if node.alt:
                annotations = self._annotations(node.style) + (ImageAlt(node.alt),)
                flow.add_atom(f"[{node.alt}]", annotations)
        elif isinstance(node, LineBreak):
            flow.line_break()
        elif isinstance(node, HorizontalRule):
            rule_width = 1 if self._measuring else flow.width
            rule = Fragment(RULE_CHAR * rule_width, self._annotations(node.style))
            flow.add_lines([TaggedLine.build([rule], verbatim=True)])
        elif isinstance(node, Preformatted):
            if node.text:
                annotations = self._annotations(node.style)
                lines = [
                    TaggedLine.build([Fragment(text, annotations)], verbatim=True)
                    for text in node.text.split("\n")
                ]
                flow.add_lines(lines, margin=True)
        elif isinstance(node, Inline):
            depth = self._enter(depth)
            for child in node.children:
                self._walk(child, flow, depth)
        elif isinstance(node, Link):
            depth = self._enter(depth)
            for child in node.children:
                self._walk(child, flow, depth)
            if self.footnote_mode:
                number = self._footnote(node.target)
                flow.add_atom(f"[{number}]", self._annotations(node.style))
        elif isinstance(node, Block):
            depth = self._enter(depth)
            if node.margin:
                flow.request_blank()
            else:
                flow.flush()
            for child in node.children:
                self._walk(child, flow, depth)
            if node.margin:
                flow.request_blank()
            else:
                flow.flush()
        elif isinstance(node, List):
            depth = self._enter(depth)
            flow.add_lines(layout_list(node, flow.width, self, depth), margin=node.style.indent == 0)
        elif isinstance(node, Table):
            depth = self._enter(depth)
            flow.add_lines(TableLayout(self).layout(node, flow.width, depth), margin=True)
        elif isinstance(node, BlockQuote):
            depth = self._enter(depth)
            inner = self.layout_children(node.children, flow.width - len(QUOTE_PREFIX), depth)
            quoted = [
                line.prefixed(QUOTE_PREFIX.rstrip() if line.is_blank else QUOTE_PREFIX)
                for line in inner
            ]
            flow.add_lines(quoted, margin=True)
        elif isinstance(node, (ListItem, TableCell)):
            # Outside their containers these are plain blocks.
            depth = self._enter(depth)
            flow.add_lines(self.layout_children(node.children, flow.width, depth))
        elif isinstance(node, TableRow):
            depth = self._enter(depth)
            flow.add_lines(self.layout_children(node.cells, flow.width, depth))
        else:
            raise TypeError(f"not a render node: {node!r}")

    # -- footnotes ----------------------------------------------------------

    def _footnote(self, target: str) -> int:
        number = self._footnotes.get(target)
        if number is None:
            number = len(self._footnotes) + 1
            self._footnotes[target] = number
        return number

    def _footnote_lines(self, width: int) -> list[TaggedLine]:
        lines: list[TaggedLine] = []
        for target, number in self._footnotes.items():
            marker = f"[{number}] "
            marker_width = visible_width(marker)
            flow = _Flow(max(1, width - marker_width))
            flow.add_text(target, (LinkTarget(target),))
            flow.flush()
            lines.extend(prefix_lines(flow.lines, marker, " " * marker_width))
        return lines


def layout(node: RenderNode, width: int, config: RenderConfig | None = None) -> list[TaggedLine]:
    """Lay out a render tree at *width* columns."""
    return LayoutEngine(config).layout(node, width)


def rewrap(lines: Iterable[TaggedLine], width: int) -> list[TaggedLine]:
    """Re-wrap already laid out lines to *width* columns.

    Verbatim lines and lines that fit are kept unchanged, so re-wrapping
    lines at the width they were laid out at reproduces them. Other lines
    are re-flowed at word boundaries, with image placeholders kept whole.
    """
    _check_width(width)
    result: list[TaggedLine] = []
    for line in lines:
        if line.verbatim or line.width <= width:
            result.append(line)
            continue
        flow = _Flow(width)
        for frag in line.fragments:
            if any(isinstance(ann, ImageAlt) for ann in frag.annotations):
                flow.add_atom(frag.text, frag.annotations)
            else:
                flow.add_text(frag.text, frag.annotations)
        flow.flush()
        result.extend(flow.lines or [TaggedLine()])
    return result
