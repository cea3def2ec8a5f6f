"""Tests for the render tree builder."""

from __future__ import annotations

import logging

import pytest

from termhtml.builder import (
    MAX_COLSPAN,
    RenderTreeBuilder,
    build_render_tree,
    collapse_whitespace,
    parse_style_attribute,
)
from termhtml.config import RenderConfig
from termhtml.dom import Element, parse_html
from termhtml.errors import NestingDepthError
from termhtml.nodes import (
    ROOT_CONTEXT,
    Block,
    BlockQuote,
    HorizontalRule,
    Image,
    Inline,
    LineBreak,
    Link,
    List,
    Preformatted,
    RenderNode,
    Table,
    Text,
)


def _children(markup: str, **options: object) -> tuple[RenderNode, ...]:
    """Build *markup* and return the children of the root block."""
    config = RenderConfig(**options)  # type: ignore[arg-type]
    return build_render_tree(parse_html(markup), config).children


def _only(markup: str, **options: object) -> RenderNode:
    children = _children(markup, **options)
    assert len(children) == 1
    return children[0]


def _texts(node: RenderNode) -> list[str]:
    """Every text node under *node*, in document order."""
    found: list[str] = []
    stack: list[object] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Text):
            found.append(current.text)
            continue
        for attr in ("children", "items", "rows", "cells"):
            kids = getattr(current, attr, None)
            if kids is not None:
                stack.extend(reversed(kids))
    return found


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TestText:
    def test_paragraph_is_a_margin_block(self) -> None:
        node = _only("<p>Hi</p>")
        assert node == Block((Text("Hi"),), margin=True)

    def test_whitespace_runs_collapse(self) -> None:
        assert _texts(_only("<p>a \n\t  b</p>")) == ["a b"]

    def test_nbsp_is_not_collapsed(self) -> None:
        assert _texts(_only("<p>a&nbsp;&nbsp;b</p>")) == ["a\u00a0\u00a0b"]

    def test_control_characters_are_stripped(self) -> None:
        dom = Element("p", children=(Element.text_node("a\x07b\x1b"),))
        assert _texts(build_render_tree(dom)) == ["ab"]

    def test_whitespace_only_text_becomes_one_space(self) -> None:
        assert collapse_whitespace("\n   \t") == " "

    def test_element_root_is_wrapped(self) -> None:
        tree = build_render_tree(Element("p", children=(Element.text_node("x"),)))
        assert isinstance(tree, Block)
        assert tree.children == (Block((Text("x"),), margin=True),)


# ---------------------------------------------------------------------------
# Tag kinds
# ---------------------------------------------------------------------------


class TestTagKinds:
    def test_bold_sets_style(self) -> None:
        node = _only("<b>x</b>")
        assert isinstance(node, Inline)
        text = node.children[0]
        assert isinstance(text, Text)
        assert text.style.style.bold

    def test_styles_accumulate(self) -> None:
        node = _only("<b><i>x</i></b>")
        text = node.children[0].children[0]
        assert text.style.style.bold and text.style.style.italic

    def test_heading_is_bold_margin_block(self) -> None:
        node = _only("<h2>Title</h2>")
        assert isinstance(node, Block)
        assert node.margin
        assert node.style.style.bold

    def test_link_with_href(self) -> None:
        node = _only('<a href="http://e.com">go</a>')
        assert isinstance(node, Link)
        assert node.target == "http://e.com"
        assert node.children[0].style.link == "http://e.com"

    def test_link_without_href_is_transparent(self) -> None:
        node = _only("<a name='x'>go</a>")
        assert isinstance(node, Inline)
        assert node.style.link is None

    def test_image_alt(self) -> None:
        assert _only('<img alt=" a\n cat ">') == Image("a cat")

    def test_line_break_and_rule(self) -> None:
        children = _children("<br><hr>")
        assert children == (LineBreak(), HorizontalRule())

    def test_blockquote(self) -> None:
        node = _only("<blockquote>q</blockquote>")
        assert isinstance(node, BlockQuote)
        assert _texts(node) == ["q"]

    def test_unknown_tag_is_inline(self) -> None:
        node = _only("<blink>x</blink>")
        assert node == Inline((Text("x"),))

    def test_script_and_style_are_suppressed(self) -> None:
        children = _children("<script>var x;</script><style>p{}</style><p>y</p>")
        assert len(children) == 1
        assert _texts(children[0]) == ["y"]

    def test_hidden_attribute_suppresses(self) -> None:
        assert _children("<div hidden>x</div>") == ()

    def test_display_none_suppresses(self) -> None:
        assert _children('<span style="display: none">x</span>') == ()

    def test_tag_override(self) -> None:
        node = _only("<span>x</span>", tag_overrides={"span": "bold"})
        assert node.style.style.bold

    def test_override_to_suppress(self) -> None:
        assert _children("<aside>x</aside>", tag_overrides={"aside": "suppress"}) == ()

    def test_li_outside_list_is_block(self) -> None:
        assert isinstance(_only("<li>x</li>"), Block)

    def test_kind_for_defaults(self) -> None:
        builder = RenderTreeBuilder()
        assert builder.kind_for("P") == "paragraph"
        assert builder.kind_for("custom-element") == "inline"


# ---------------------------------------------------------------------------
# Presentation attributes
# ---------------------------------------------------------------------------


class TestPresentation:
    def test_style_attribute_declarations(self) -> None:
        assert parse_style_attribute("Color: red; font-weight:bold !important;;bad") == {
            "color": "red",
            "font-weight": "bold",
        }

    def test_inline_color_and_weight(self) -> None:
        node = _only('<span style="color: #f00; font-weight: 700">x</span>')
        assert node.style.style.fg == "#f00"
        assert node.style.style.bold

    def test_unrecognized_color_is_ignored(self) -> None:
        node = _only('<span style="color: inherit">x</span>')
        assert node.style.style.fg is None

    def test_font_color_attribute(self) -> None:
        assert _only('<font color="navy">x</font>').style.style.fg == "navy"

    def test_background_shorthand(self) -> None:
        node = _only('<span style="background: url(x.png) #00ff00 no-repeat">x</span>')
        assert node.style.style.bg == "#00ff00"

    def test_bgcolor_attribute(self) -> None:
        assert _only('<div bgcolor="white">x</div>').style.style.bg == "white"

    def test_text_decoration(self) -> None:
        node = _only('<span style="text-decoration: underline line-through">x</span>')
        assert node.style.style.underline
        assert node.style.style.strikethrough

    def test_italic_font_style(self) -> None:
        assert _only('<span style="font-style: oblique">x</span>').style.style.italic


# ---------------------------------------------------------------------------
# Preformatted
# ---------------------------------------------------------------------------


class TestPreformatted:
    def test_text_is_verbatim(self) -> None:
        node = _only("<pre>\n  x  y\n\tz\n</pre>")
        assert node == Preformatted("  x  y\n        z")

    def test_nested_markup_contributes_text(self) -> None:
        node = _only("<pre><b>a</b> b<br>c</pre>")
        assert node == Preformatted("a b\nc")

    def test_preserve_whitespace_tags(self) -> None:
        node = _only("<div>a   b</div>", preserve_whitespace_tags=frozenset({"div"}))
        assert node == Preformatted("a   b")


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


class TestLists:
    def test_ordered_list_start(self) -> None:
        node = _only('<ol start="3"><li>a</li><li>b</li></ol>')
        assert isinstance(node, List)
        assert node.ordered
        assert node.start == 3
        assert len(node.items) == 2

    def test_bad_start_defaults_to_one(self) -> None:
        assert _only('<ol start="x"><li>a</li></ol>').start == 1

    def test_whitespace_between_items_is_ignored(self) -> None:
        node = _only("<ul>\n  <li>a</li>\n  <li>b</li>\n</ul>")
        assert [_texts(item) for item in node.items] == [["a"], ["b"]]

    def test_items_are_indented(self) -> None:
        node = _only("<ul><li>a<ul><li>b</li></ul></li></ul>")
        assert node.style.indent == 0
        outer_item = node.items[0]
        assert outer_item.style.indent == 1
        nested = outer_item.children[1]
        assert isinstance(nested, List)
        assert nested.style.indent == 1
        assert nested.items[0].style.indent == 2

    def test_stray_content_joins_items(self) -> None:
        node = _only("<ul>x<li>a</li>y</ul>")
        assert [_texts(item) for item in node.items] == [["x"], ["a", "y"]]


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TestTables:
    def test_rows_and_cells(self) -> None:
        node = _only("<table><tr><td>x</td><td>yy</td></tr></table>")
        assert isinstance(node, Table)
        assert [_texts(cell) for cell in node.rows[0].cells] == [["x"], ["yy"]]

    def test_sections_are_flattened(self) -> None:
        node = _only(
            "<table><thead><tr><th>h</th></tr></thead>"
            "<tbody><tr><td>a</td></tr><tr><td>b</td></tr></tbody></table>"
        )
        assert len(node.rows) == 3

    def test_header_cells_are_bold(self) -> None:
        node = _only("<table><tr><th>h</th><td>d</td></tr></table>")
        header, data = node.rows[0].cells
        assert header.style.style.bold
        assert not data.style.style.bold

    def test_caption_comes_before_table(self) -> None:
        caption, table = _children("<table><caption>Cap</caption><tr><td>a</td></tr></table>")
        assert _texts(caption) == ["Cap"]
        assert isinstance(table, Table)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("2", 2), ("abc", 1), ("0", 1), ("-4", 1), ("5000", MAX_COLSPAN)],
    )
    def test_colspan_parsing(self, value: str, expected: int) -> None:
        node = _only(f'<table><tr><td colspan="{value}">a</td></tr></table>')
        assert node.rows[0].cells[0].colspan == expected

    def test_rowspan(self) -> None:
        node = _only('<table><tr><td rowspan="2">a</td></tr><tr><td>b</td></tr></table>')
        assert node.rows[0].cells[0].rowspan == 2

    def test_stray_row_content_becomes_a_cell(self) -> None:
        node = _only("<table><tr><td>a</td><span>b</span></tr></table>")
        assert [_texts(cell) for cell in node.rows[0].cells] == [["a"], ["b"]]


# ---------------------------------------------------------------------------
# Depth bound
# ---------------------------------------------------------------------------


class TestDepth:
    def test_exceeding_max_depth_raises(self) -> None:
        with pytest.raises(NestingDepthError) as excinfo:
            _children("<div>" * 5 + "x" + "</div>" * 5, max_depth=3)
        assert excinfo.value.depth == 4
        assert excinfo.value.limit == 3

    def test_nesting_at_the_limit_is_accepted(self) -> None:
        children = _children("<div>" * 3 + "x" + "</div>" * 3, max_depth=3)
        assert _texts(children[0]) == ["x"]


class TestLogging:
    def test_suppressed_subtree_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="termhtml.builder")
        _children("<script>x</script>")
        assert "suppressed <script>" in caplog.text

    def test_root_context_is_shared(self) -> None:
        assert _only("<p>x</p>").style is ROOT_CONTEXT
