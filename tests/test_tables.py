"""Tests for table layout: placement, negotiation and drawing."""

from __future__ import annotations

import pytest

from termhtml.api import render_lines
from termhtml.config import RenderConfig
from termhtml.dom import parse_html
from termhtml.lines import lines_text
from termhtml.nodes import Table, TableCell, TableRow, Text
from termhtml.tables import allocate_widths, layout_table, place_cells


def _plain_lines(markup: str, width: int = 80) -> list[str]:
    return lines_text(render_lines(parse_html(markup), RenderConfig(width=width)))


def _table(*rows: str) -> str:
    return "<table>" + "".join(f"<tr>{row}</tr>" for row in rows) + "</table>"


def _cell(text: str, **spans: int) -> TableCell:
    return TableCell((Text(text),), **spans)


WIDE = "\u4e16\u754c"


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


class TestDrawing:
    def test_single_row(self) -> None:
        assert _plain_lines(_table("<td>x</td><td>yy</td>")) == [
            "┌───┬────┐",
            "│ x │ yy │",
            "└───┴────┘",
        ]

    def test_separator_between_rows(self) -> None:
        assert _plain_lines(_table("<td>a</td><td>b</td>", "<td>c</td><td>d</td>")) == [
            "┌───┬───┐",
            "│ a │ b │",
            "├───┼───┤",
            "│ c │ d │",
            "└───┴───┘",
        ]

    def test_rows_are_uniform(self) -> None:
        markup = _table(
            "<th>name</th><th>description</th>",
            "<td>alpha</td><td>the first letter of the greek alphabet</td>",
            "<td>omega</td><td>last</td>",
        )
        lines = _plain_lines(markup, 30)
        widths = {len(line) for line in lines}
        assert len(widths) == 1
        assert widths.pop() <= 30

    def test_separators_align(self) -> None:
        lines = _plain_lines(_table("<td>a b c</td><td>d</td>", "<td>e</td><td>f g h i</td>"), 14)
        column = lines[0].index("┬")
        for line in lines:
            assert line[column] in "┬│┼┴"

    def test_missing_cells_are_filled(self) -> None:
        assert _plain_lines(_table("<td>a</td><td>b</td>", "<td>c</td>")) == [
            "┌───┬───┐",
            "│ a │ b │",
            "├───┼───┤",
            "│ c │   │",
            "└───┴───┘",
        ]

    def test_colspan(self) -> None:
        assert _plain_lines(_table('<td colspan="2">wide</td>', "<td>a</td><td>b</td>")) == [
            "┌───────┐",
            "│ wide  │",
            "├───┬───┤",
            "│ a │ b │",
            "└───┴───┘",
        ]

    def test_rowspan_continues_through_separator(self) -> None:
        assert _plain_lines(_table('<td rowspan="2">x</td><td>a</td>', "<td>b</td>")) == [
            "┌───┬───┐",
            "│ x │ a │",
            "│   ├───┤",
            "│   │ b │",
            "└───┴───┘",
        ]

    def test_tall_rowspan_grows_last_row(self) -> None:
        markup = _table('<td rowspan="2">1<br>2<br>3<br>4</td><td>a</td>', "<td>b</td>")
        assert _plain_lines(markup) == [
            "┌───┬───┐",
            "│ 1 │ a │",
            "│ 2 ├───┤",
            "│ 3 │ b │",
            "│ 4 │   │",
            "└───┴───┘",
        ]

    def test_colspan_is_clamped_to_natural_columns(self) -> None:
        assert _plain_lines(_table('<td colspan="5">a</td>')) == ["┌───┐", "│ a │", "└───┘"]

    def test_empty_tables_produce_nothing(self) -> None:
        assert _plain_lines("<table></table>") == []
        assert _plain_lines("<table><tr></tr></table>") == []

    def test_table_is_a_margin_block(self) -> None:
        lines = _plain_lines("<p>x</p>" + _table("<td>a</td>") + "<p>y</p>")
        assert lines == ["x", "", "┌───┐", "│ a │", "└───┘", "", "y"]

    def test_caption_precedes_table(self) -> None:
        lines = _plain_lines("<table><caption>Cap</caption><tr><td>a</td></tr></table>")
        assert lines == ["Cap", "", "┌───┐", "│ a │", "└───┘"]

    def test_nested_table(self) -> None:
        inner = _table("<td>1</td><td>2</td>")
        lines = _plain_lines(_table(f"<td>{inner}</td><td>z</td>"))
        assert len({len(line) for line in lines}) == 1
        assert lines[1] == "│ ┌───┬───┐ │ z │"
        assert lines[2] == "│ │ 1 │ 2 │ │   │"

    def test_wide_glyphs_align(self) -> None:
        lines = render_lines(parse_html(_table(f"<td>{WIDE}</td><td>x</td>", "<td>a</td><td>b</td>")), RenderConfig())
        assert lines_text(lines) == [
            "┌──────┬───┐",
            f"│ {WIDE} │ x │",
            "├──────┼───┤",
            "│ a    │ b │",
            "└──────┴───┘",
        ]
        assert {line.width for line in lines} == {12}

    def test_wide_glyphs_wrap_inside_cells(self) -> None:
        lines = render_lines(parse_html(_table(f"<td>{WIDE} {WIDE}</td><td>x</td>")), RenderConfig(width=12))
        assert lines_text(lines)[1:3] == [f"│ {WIDE} │ x │", f"│ {WIDE} │   │"]
        assert {line.width for line in lines} == {12}

    @pytest.mark.parametrize("width", [16, 20, 40])
    def test_wide_table_lines_fit(self, width: int) -> None:
        markup = _table(f"<td>{WIDE} {WIDE} {WIDE}</td><td>{WIDE}</td>", "<td>a b c</td><td>d</td>")
        for line in render_lines(parse_html(markup), RenderConfig(width=width)):
            assert line.width <= width, line.text

    def test_rule_in_cell_does_not_widen_column(self) -> None:
        lines = _plain_lines(_table("<td>a<hr></td><td>b</td>"))
        assert lines[2] == "│ ─ │   │"


# ---------------------------------------------------------------------------
# Column negotiation
# ---------------------------------------------------------------------------


class TestNegotiation:
    def test_preferred_widths_when_they_fit(self) -> None:
        assert allocate_widths([3, 2], [11, 2], 20) == [11, 2]

    def test_minimums_when_nothing_else_fits(self) -> None:
        assert allocate_widths([3, 2], [11, 2], 4) == [3, 2]

    def test_proportional_split(self) -> None:
        assert allocate_widths([3, 2], [11, 2], 11) == [9, 2]

    def test_even_split(self) -> None:
        assert allocate_widths([1, 1, 1], [10, 10, 10], 12) == [4, 4, 4]

    def test_takes_from_column_with_most_slack(self) -> None:
        assert allocate_widths([5, 1], [6, 6], 8) == [5, 3]

    def test_shrinks_to_minimums(self) -> None:
        lines = _plain_lines(_table("<td>aaa bbb ccc</td><td>dd</td>"), 12)
        assert lines == [
            "┌─────┬────┐",
            "│ aaa │ dd │",
            "│ bbb │    │",
            "│ ccc │    │",
            "└─────┴────┘",
        ]

    def test_shrinks_proportionally(self) -> None:
        lines = _plain_lines(_table("<td>aaa bbb ccc</td><td>dd</td>"), 18)
        assert lines == [
            "┌───────────┬────┐",
            "│ aaa bbb   │ dd │",
            "│ ccc       │    │",
            "└───────────┴────┘",
        ]


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------


class TestPlacement:
    def test_rowspan_pushes_later_cells_right(self) -> None:
        table = Table(
            (
                TableRow((_cell("x", rowspan=2), _cell("a"))),
                TableRow((_cell("b"),)),
            )
        )
        placed, rows, cols = place_cells(table)
        assert (rows, cols) == (2, 2)
        assert [(p.row, p.col) for p in placed] == [(0, 0), (0, 1), (1, 1)]

    def test_rowspan_is_clamped_to_remaining_rows(self) -> None:
        table = Table((TableRow((_cell("x", rowspan=9),)),))
        placed, _, _ = place_cells(table)
        assert placed[0].rowspan == 1

    def test_filler_cells(self) -> None:
        table = Table((TableRow((_cell("a"), _cell("b"))), TableRow((_cell("c"),))))
        placed, _, _ = place_cells(table)
        assert [(p.row, p.col) for p in placed] == [(0, 0), (0, 1), (1, 0), (1, 1)]
        assert placed[-1].cell.children == ()


class TestLayoutTable:
    def test_layout_table_directly(self) -> None:
        table = Table((TableRow((_cell("x"), _cell("yy"))),))
        assert lines_text(layout_table(table, 20)) == ["┌───┬────┐", "│ x │ yy │", "└───┴────┘"]

    @pytest.mark.parametrize("width", [1, 5, 9, 40])
    def test_every_width_gives_uniform_rows(self, width: int) -> None:
        table = Table(
            (
                TableRow((_cell("alpha beta"), _cell("gamma", colspan=2))),
                TableRow((_cell("d"), _cell("e", rowspan=2), _cell("f"))),
                TableRow((_cell("g"), _cell("h i j k"))),
            )
        )
        lines = layout_table(table, width)
        assert len({line.width for line in lines}) == 1
