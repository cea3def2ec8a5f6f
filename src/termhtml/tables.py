"""Table layout: grid placement, column negotiation and box drawing.

Cells are placed on a grid honoring ``colspan``/``rowspan``, measured for a
minimum and a preferred width, and the available width is split between
columns. Every cell is then laid out at its final width and the grid is drawn
with box-drawing characters::

    ┌───┬────┐
    │ x │ yy │
    └───┴────┘
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from termhtml.config import RenderConfig
from termhtml.lines import Fragment, TaggedLine
from termhtml.nodes import Table, TableCell

if TYPE_CHECKING:
    from termhtml.layout import LayoutEngine

logger = logging.getLogger(__name__)

# Border overhead per column ("│ " + " "), plus one for the closing border.
CELL_OVERHEAD = 3

# Junction glyphs keyed by (up, down, left, right) border segments.
JUNCTIONS: dict[tuple[bool, bool, bool, bool], str] = {
    (False, True, False, True): "┌",
    (False, True, True, False): "┐",
    (True, False, False, True): "└",
    (True, False, True, False): "┘",
    (True, True, False, True): "├",
    (True, True, True, False): "┤",
    (False, True, True, True): "┬",
    (True, False, True, True): "┴",
    (True, True, True, True): "┼",
    (False, False, True, True): "─",
    (False, False, True, False): "─",
    (False, False, False, True): "─",
    (True, True, False, False): "│",
    (True, False, False, False): "│",
    (False, True, False, False): "│",
    (False, False, False, False): " ",
}
HORIZONTAL = "─"
VERTICAL = "│"


@dataclass(frozen=True)
class PlacedCell:
    """A cell with its grid position and clamped spans."""

    cell: TableCell
    row: int
    col: int
    colspan: int = 1
    rowspan: int = 1


# ---------------------------------------------------------------------------
# Grid placement
# ---------------------------------------------------------------------------


def place_cells(table: Table) -> tuple[list[PlacedCell], int, int]:
    """Place the cells of *table* on a grid.

    Returns ``(cells, rows, columns)``. Slots left empty are filled with empty
    cells so every grid position is covered exactly once.
    """
    n_rows = len(table.rows)
    natural = max((len(row.cells) for row in table.rows), default=0)
    if natural == 0:
        return [], n_rows, 0

    placed: list[PlacedCell] = []
    occupied: set[tuple[int, int]] = set()
    n_cols = 0
    for r, row in enumerate(table.rows):
        c = 0
        for cell in row.cells:
            while (r, c) in occupied:
                c += 1
            colspan = min(cell.colspan, natural)
            rowspan = min(cell.rowspan, n_rows - r)
            if (colspan, rowspan) != (cell.colspan, cell.rowspan):
                logger.debug(
                    "cell span %dx%d clamped to %dx%d", cell.colspan, cell.rowspan, colspan, rowspan
                )
            placed.append(PlacedCell(cell, r, c, colspan, rowspan))
            for rr in range(r, r + rowspan):
                for cc in range(c, c + colspan):
                    occupied.add((rr, cc))
            c += colspan
            n_cols = max(n_cols, c)

    filler = TableCell(())
    for r in range(n_rows):
        for c in range(n_cols):
            if (r, c) not in occupied:
                placed.append(PlacedCell(filler, r, c))
    placed.sort(key=lambda p: (p.row, p.col))
    return placed, n_rows, n_cols


# ---------------------------------------------------------------------------
# Column negotiation
# ---------------------------------------------------------------------------


def _spread(values: list[int], start: int, span: int, needed: int) -> None:
    """Grow ``values[start:start + span]`` proportionally to sum to *needed*."""
    current = sum(values[start : start + span])
    shortfall = needed - current
    if shortfall <= 0:
        return
    for i in range(start, start + span):
        values[i] += shortfall * values[i] // current
    remaining = needed - sum(values[start : start + span])
    i = 0
    while remaining > 0:
        values[start + i % span] += 1
        remaining -= 1
        i += 1


def allocate_widths(minimums: Sequence[int], preferred: Sequence[int], available: int) -> list[int]:
    """Split *available* columns between table columns.

    Preferred widths when they fit; minimums when even those do not (the
    table overflows); otherwise proportional to preferred, never below the
    minimum.
    """
    if sum(preferred) <= available:
        return list(preferred)
    if sum(minimums) >= available:
        if sum(minimums) > available:
            logger.debug("table needs %d columns, only %d available", sum(minimums), available)
        return list(minimums)

    total = sum(preferred)
    widths = [max(low, pref * available // total) for low, pref in zip(minimums, preferred)]
    n = len(widths)
    excess = sum(widths) - available
    while excess > 0:
        i = max(range(n), key=lambda k: widths[k] - minimums[k])
        widths[i] -= 1
        excess -= 1
    while excess < 0:
        i = max(range(n), key=lambda k: preferred[k] - widths[k])
        widths[i] += 1
        excess += 1
    return widths


def span_width(widths: Sequence[int], col: int, colspan: int) -> int:
    """Content width of a cell spanning *colspan* columns from *col*."""
    return sum(widths[col : col + colspan]) + CELL_OVERHEAD * (colspan - 1)


# ---------------------------------------------------------------------------
# TableLayout
# ---------------------------------------------------------------------------


class TableLayout:
    """Lays out one table through a :class:`~termhtml.layout.LayoutEngine`."""

    def __init__(self, engine: LayoutEngine) -> None:
        self._engine = engine

    def layout(self, table: Table, width: int, depth: int = 0) -> list[TaggedLine]:
        placed, n_rows, n_cols = place_cells(table)
        if n_rows == 0 or n_cols == 0:
            return []
        minimums, preferred = self.measure(placed, n_cols, depth)
        widths = allocate_widths(minimums, preferred, width - (CELL_OVERHEAD * n_cols + 1))
        return self._draw(placed, widths, n_rows, depth)

    # -- measure ------------------------------------------------------------

    def _cell_width(self, cell: TableCell, width: int, depth: int) -> int:
        lines = self._engine.layout_cell(cell, width, depth + 1, measuring=True)
        return max((line.width for line in lines), default=0)

    def measure(self, placed: Sequence[PlacedCell], n_cols: int, depth: int = 0) -> tuple[list[int], list[int]]:
        """Return per-column ``(minimums, preferred)`` widths, each at least 1."""
        minimums = [1] * n_cols
        preferred = [1] * n_cols
        spanning: list[tuple[PlacedCell, int, int]] = []

        for p in placed:
            if not p.cell.children:
                continue
            low = self._cell_width(p.cell, 1, depth)
            high = max(low, self._cell_width(p.cell, self._engine.UNBOUNDED_WIDTH, depth))
            if p.colspan == 1:
                minimums[p.col] = max(minimums[p.col], low)
                preferred[p.col] = max(preferred[p.col], high)
            else:
                spanning.append((p, low, high))

        for p, low, high in sorted(spanning, key=lambda item: item[0].colspan):
            inner = CELL_OVERHEAD * (p.colspan - 1)
            _spread(minimums, p.col, p.colspan, low - inner)
            _spread(preferred, p.col, p.colspan, high - inner)

        preferred = [max(low, high) for low, high in zip(minimums, preferred)]
        return minimums, preferred

    # -- draw ---------------------------------------------------------------

    def _draw(self, placed: Sequence[PlacedCell], widths: list[int], n_rows: int, depth: int) -> list[TaggedLine]:
        n_cols = len(widths)
        owner = [[0] * n_cols for _ in range(n_rows)]
        for index, p in enumerate(placed):
            for r in range(p.row, p.row + p.rowspan):
                for c in range(p.col, p.col + p.colspan):
                    owner[r][c] = index

        contents: list[list[TaggedLine]] = []
        for p in placed:
            cell_width = span_width(widths, p.col, p.colspan)
            lines = self._engine.layout_cell(p.cell, cell_width, depth + 1)
            contents.append([line.padded(cell_width) for line in lines])

        heights = [1] * n_rows
        for p, lines in zip(placed, contents):
            if p.rowspan == 1:
                heights[p.row] = max(heights[p.row], len(lines))
        for p, lines in sorted(zip(placed, contents), key=lambda item: item[0].rowspan):
            if p.rowspan > 1:
                last = p.row + p.rowspan - 1
                available = sum(heights[p.row : last + 1]) + p.rowspan - 1
                if len(lines) > available:
                    heights[last] += len(lines) - available

        # Line index of each row's first content line; line 0 is the top border.
        row_top: list[int] = []
        line_index = 1
        for height in heights:
            row_top.append(line_index)
            line_index += height + 1

        grid = _Grid(placed, owner, contents, widths, row_top)
        output: list[TaggedLine] = []
        for r in range(n_rows + 1):
            output.append(grid.border(r))
            if r < n_rows:
                for k in range(heights[r]):
                    output.append(grid.content(r, row_top[r] + k))
        return output


class _Grid:
    """Draws border and content lines for a placed, measured table."""

    def __init__(
        self,
        placed: Sequence[PlacedCell],
        owner: list[list[int]],
        contents: list[list[TaggedLine]],
        widths: list[int],
        row_top: list[int],
    ) -> None:
        self.placed = placed
        self.owner = owner
        self.contents = contents
        self.widths = widths
        self.row_top = row_top
        self.n_rows = len(owner)
        self.n_cols = len(widths)

    def _vertical(self, r: int, c: int) -> bool:
        """Is there a vertical border left of column *c* in row *r*?"""
        if r < 0 or r >= self.n_rows:
            return False
        if c == 0 or c == self.n_cols:
            return True
        return self.owner[r][c - 1] != self.owner[r][c]

    def _horizontal(self, r: int, c: int) -> bool:
        """Is there a horizontal border above row *r* in column *c*?"""
        if c < 0 or c >= self.n_cols:
            return False
        if r == 0 or r == self.n_rows:
            return True
        return self.owner[r - 1][c] != self.owner[r][c]

    def _junction(self, r: int, c: int) -> str:
        key = (
            self._vertical(r - 1, c),
            self._vertical(r, c),
            self._horizontal(r, c - 1),
            self._horizontal(r, c),
        )
        return JUNCTIONS[key]

    def _cell_fragments(self, index: int, line_index: int) -> list[Fragment]:
        p = self.placed[index]
        lines = self.contents[index]
        offset = line_index - self.row_top[p.row]
        if 0 <= offset < len(lines):
            body = lines[offset]
        else:
            body = TaggedLine().padded(span_width(self.widths, p.col, p.colspan))
        return [Fragment(" "), *body.fragments, Fragment(" ")]

    def border(self, r: int) -> TaggedLine:
        """The border line above row *r* (``r == n_rows`` is the bottom)."""
        line_index = self.row_top[r] - 1 if r < self.n_rows else -1
        fragments: list[Fragment] = []
        c = 0
        while True:
            fragments.append(Fragment(self._junction(r, c)))
            if c == self.n_cols:
                break
            if self._horizontal(r, c):
                fragments.append(Fragment(HORIZONTAL * (self.widths[c] + 2)))
                c += 1
            else:
                # A rowspan cell continues through this border.
                index = self.owner[r][c]
                fragments.extend(self._cell_fragments(index, line_index))
                c += self.placed[index].colspan
        return TaggedLine.build(fragments, verbatim=True)

    def content(self, r: int, line_index: int) -> TaggedLine:
        fragments: list[Fragment] = []
        c = 0
        while c < self.n_cols:
            index = self.owner[r][c]
            fragments.append(Fragment(VERTICAL))
            fragments.extend(self._cell_fragments(index, line_index))
            c += self.placed[index].colspan
        fragments.append(Fragment(VERTICAL))
        return TaggedLine.build(fragments, verbatim=True)


def layout_table(table: Table, width: int, config: RenderConfig | None = None) -> list[TaggedLine]:
    """Lay out a single table at *width* columns."""
    from termhtml.layout import LayoutEngine

    engine = LayoutEngine(config)
    return engine.layout(table, width)
