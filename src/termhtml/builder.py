"""Render tree builder: DOM nodes -> typed render nodes.

Every element resolves through the fixed tag table in :mod:`termhtml.tags`
(optionally overridden by configuration) to one kind, and each kind maps to
one render node variant. Style, link and indent state is threaded down as an
immutable :class:`~termhtml.nodes.StyleContext`.
"""

from __future__ import annotations

import logging
import re

from termhtml.colors import parse_color
from termhtml.config import RenderConfig
from termhtml.dom import COMMENT, DOCUMENT, TEXT, DomNode
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
    ListItem,
    Preformatted,
    RenderNode,
    StyleContext,
    Table,
    TableCell,
    TableRow,
    Text,
)
from termhtml.tags import DEFAULT_TAG_KINDS, TagKind

logger = logging.getLogger(__name__)

# HTML's own upper bounds for span attributes.
MAX_COLSPAN = 1000
MAX_ROWSPAN = 65534

_WS_RE = re.compile(r"[ \t\n\r\f]+")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0e-\x1f\x7f-\x9f]")
_FLAG_KINDS = ("bold", "italic", "underline", "strikethrough", "code")
_TABLE_PART_KINDS = ("table_section", "table_row", "table_cell", "table_header_cell", "caption")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def strip_controls(text: str) -> str:
    """Remove control characters other than whitespace."""
    return _CONTROL_RE.sub("", text)


def collapse_whitespace(text: str) -> str:
    """Collapse every run of whitespace to one space."""
    return _WS_RE.sub(" ", strip_controls(text))


def parse_style_attribute(value: str) -> dict[str, str]:
    """Split an inline ``style`` attribute into lower-cased declarations."""
    declarations: dict[str, str] = {}
    for part in value.split(";"):
        name, sep, val = part.partition(":")
        if not sep:
            continue
        val = val.replace("!important", "").strip()
        if val:
            declarations[name.strip().lower()] = val
    return declarations


def _span(value: str | None, limit: int) -> int:
    if value is None:
        return 1
    try:
        span = int(value.strip())
    except ValueError:
        return 1
    if span < 1:
        return 1
    if span > limit:
        logger.debug("span %d clamped to %d", span, limit)
        return limit
    return span


def _start_index(value: str | None) -> int:
    if value is None:
        return 1
    try:
        return int(value.strip())
    except ValueError:
        return 1


def _first_color(value: str | None) -> str | None:
    """Return *value*, or the first token of it, that parses as a color."""
    if not value:
        return None
    if parse_color(value) is not None:
        return value.strip()
    for token in value.split():
        if parse_color(token) is not None:
            return token
    return None


def _is_bold_weight(value: str) -> bool:
    value = value.strip().lower()
    if value in ("bold", "bolder"):
        return True
    return value.isdigit() and int(value) >= 600


# ---------------------------------------------------------------------------
# RenderTreeBuilder
# ---------------------------------------------------------------------------


class RenderTreeBuilder:
    """Converts a DOM tree into a render tree for one configuration."""

    def __init__(self, config: RenderConfig | None = None) -> None:
        self._config = config or RenderConfig()

    def build(self, dom: DomNode) -> Block:
        """Return the render tree root for *dom*."""
        if dom.tag == DOCUMENT:
            return Block(self._children(dom, ROOT_CONTEXT, 0))
        return Block(tuple(self._convert(dom, ROOT_CONTEXT, 0)))

    def kind_for(self, tag: str) -> TagKind:
        """Resolve an element name to its kind."""
        tag = tag.lower()
        override = self._config.tag_overrides.get(tag)
        if override is not None:
            return override
        if tag in self._config.preserve_whitespace_tags:
            return "preformatted"
        kind = DEFAULT_TAG_KINDS.get(tag)
        if kind is None:
            logger.debug("unknown element <%s> treated as inline", tag)
            return "inline"
        return kind

    # -- depth --------------------------------------------------------------

    def _descend(self, depth: int) -> int:
        depth += 1
        if depth > self._config.max_depth:
            raise NestingDepthError(depth, self._config.max_depth)
        return depth

    # -- generic conversion -------------------------------------------------

    def _children(self, node: DomNode, ctx: StyleContext, depth: int) -> tuple[RenderNode, ...]:
        result: list[RenderNode] = []
        for child in node.children:
            result.extend(self._convert(child, ctx, depth))
        return tuple(result)

    def _convert(self, node: DomNode, ctx: StyleContext, depth: int) -> list[RenderNode]:
        tag = node.tag
        if tag == TEXT:
            text = collapse_whitespace(node.text)
            return [Text(text, ctx)] if text else []
        if tag == COMMENT:
            return []
        if tag == DOCUMENT:
            return [Block(self._children(node, ctx, depth), style=ctx)]

        depth = self._descend(depth)
        kind = self.kind_for(tag)
        declarations = parse_style_attribute(node.attrs.get("style", ""))
        if kind == "suppress" or self._is_hidden(node, declarations):
            logger.debug("suppressed <%s> and its subtree", tag)
            return []
        ctx = self._presentation(node, declarations, ctx)

        if kind == "block":
            return [Block(self._children(node, ctx, depth), style=ctx)]
        if kind == "paragraph":
            return [Block(self._children(node, ctx, depth), margin=True, style=ctx)]
        if kind == "heading":
            ctx = ctx.with_style(bold=True)
            return [Block(self._children(node, ctx, depth), margin=True, style=ctx)]
        if kind in _FLAG_KINDS:
            ctx = ctx.with_style(**{kind: True})
            return [Inline(self._children(node, ctx, depth), ctx)]
        if kind == "link":
            target = strip_controls(node.attrs.get("href", "")).strip()
            if not target:
                return [Inline(self._children(node, ctx, depth), ctx)]
            ctx = ctx.with_link(target)
            return [Link(self._children(node, ctx, depth), target, ctx)]
        if kind in ("unordered_list", "ordered_list"):
            return [self._list(node, ctx, depth, ordered=kind == "ordered_list")]
        if kind == "list_item":
            # An <li> outside any list.
            return [Block(self._children(node, ctx, depth), style=ctx)]
        if kind == "table":
            return self._table(node, ctx, depth)
        if kind in _TABLE_PART_KINDS:
            # Table parts outside a table.
            return [Block(self._children(node, ctx, depth), style=ctx)]
        if kind == "image":
            alt = collapse_whitespace(node.attrs.get("alt", "")).strip()
            return [Image(alt, ctx)]
        if kind == "line_break":
            return [LineBreak(ctx)]
        if kind == "rule":
            return [HorizontalRule(ctx)]
        if kind == "preformatted":
            return [Preformatted(self._preformatted_text(node), ctx)]
        if kind == "blockquote":
            return [BlockQuote(self._children(node, ctx, depth), ctx)]
        return [Inline(self._children(node, ctx, depth), ctx)]

    # -- presentation attributes --------------------------------------------

    @staticmethod
    def _is_hidden(node: DomNode, declarations: dict[str, str]) -> bool:
        if "hidden" in node.attrs:
            return True
        return declarations.get("display", "").lower() == "none"

    @staticmethod
    def _presentation(node: DomNode, declarations: dict[str, str], ctx: StyleContext) -> StyleContext:
        changes: dict[str, object] = {}

        color = _first_color(declarations.get("color"))
        if color is None and node.tag == "font":
            color = _first_color(node.attrs.get("color"))
        if color is not None:
            changes["fg"] = color

        background = (
            _first_color(declarations.get("background-color"))
            or _first_color(declarations.get("background"))
            or _first_color(node.attrs.get("bgcolor"))
        )
        if background is not None:
            changes["bg"] = background

        if _is_bold_weight(declarations.get("font-weight", "")):
            changes["bold"] = True
        if declarations.get("font-style", "").lower() in ("italic", "oblique"):
            changes["italic"] = True
        decoration = (
            declarations.get("text-decoration", "") + " " + declarations.get("text-decoration-line", "")
        ).lower()
        if "underline" in decoration:
            changes["underline"] = True
        if "line-through" in decoration:
            changes["strikethrough"] = True

        if not changes:
            return ctx
        return ctx.with_style(**changes)

    # -- preformatted -------------------------------------------------------

    def _preformatted_text(self, node: DomNode) -> str:
        parts: list[str] = []
        stack: list[DomNode] = list(reversed(node.children))
        while stack:
            current = stack.pop()
            if current.tag == TEXT:
                parts.append(current.text)
            elif current.tag == COMMENT:
                continue
            elif current.tag.lower() == "br":
                parts.append("\n")
            elif self.kind_for(current.tag) != "suppress":
                stack.extend(reversed(current.children))

        text = strip_controls("".join(parts))
        text = text.replace("\r\n", "\n").replace("\r", "\n").expandtabs(8)
        # Parsers drop the newline right after <pre>; the one before </pre> is layout only.
        if text.startswith("\n"):
            text = text[1:]
        if text.endswith("\n"):
            text = text[:-1]
        return text

    # -- lists --------------------------------------------------------------

    def _list(self, node: DomNode, ctx: StyleContext, depth: int, *, ordered: bool) -> List:
        start = _start_index(node.attrs.get("start")) if ordered else 1
        item_ctx = ctx.indented()
        items: list[tuple[StyleContext, list[RenderNode]]] = []

        for child in node.children:
            if child.tag == TEXT and not collapse_whitespace(child.text).strip():
                continue
            if child.tag not in (TEXT, COMMENT, DOCUMENT) and self.kind_for(child.tag) == "list_item":
                child_depth = self._descend(depth)
                declarations = parse_style_attribute(child.attrs.get("style", ""))
                if self._is_hidden(child, declarations):
                    continue
                li_ctx = self._presentation(child, declarations, item_ctx)
                items.append((li_ctx, list(self._children(child, li_ctx, child_depth))))
                continue

            # Stray content joins the previous item.
            converted = self._convert(child, item_ctx, depth)
            if not converted:
                continue
            if not items:
                items.append((item_ctx, []))
            items[-1][1].extend(converted)

        return List(
            tuple(ListItem(tuple(children), li_ctx) for li_ctx, children in items),
            ordered=ordered,
            start=start,
            style=ctx,
        )

    # -- tables -------------------------------------------------------------

    def _table(self, node: DomNode, ctx: StyleContext, depth: int) -> list[RenderNode]:
        before: list[RenderNode] = []
        rows: list[TableRow] = []
        self._collect_rows(node, ctx, depth, rows, before, allow_sections=True)
        return [*before, Table(tuple(rows), ctx)]

    def _collect_rows(
        self,
        container: DomNode,
        ctx: StyleContext,
        depth: int,
        rows: list[TableRow],
        before: list[RenderNode],
        *,
        allow_sections: bool,
    ) -> None:
        for child in container.children:
            if child.tag == TEXT:
                text = collapse_whitespace(child.text)
                if text.strip():
                    before.append(Text(text, ctx))
                continue
            if child.tag in (COMMENT, DOCUMENT):
                continue

            kind = self.kind_for(child.tag)
            if kind == "table_row" or (kind == "table_section" and allow_sections) or kind == "caption":
                child_depth = self._descend(depth)
                declarations = parse_style_attribute(child.attrs.get("style", ""))
                if self._is_hidden(child, declarations):
                    continue
                child_ctx = self._presentation(child, declarations, ctx)
                if kind == "table_row":
                    rows.append(self._row(child, child_ctx, child_depth))
                elif kind == "table_section":
                    self._collect_rows(child, child_ctx, child_depth, rows, before, allow_sections=False)
                else:
                    before.append(Block(self._children(child, child_ctx, child_depth), style=child_ctx))
                continue

            # Anything else inside a table is shown before it.
            before.extend(self._convert(child, ctx, depth))

    def _row(self, node: DomNode, ctx: StyleContext, depth: int) -> TableRow:
        cells: list[TableCell] = []
        for child in node.children:
            if child.tag == TEXT:
                text = collapse_whitespace(child.text)
                if text.strip():
                    cells.append(TableCell((Text(text, ctx),), style=ctx))
                continue
            if child.tag in (COMMENT, DOCUMENT):
                continue

            kind = self.kind_for(child.tag)
            if kind not in ("table_cell", "table_header_cell"):
                converted = self._convert(child, ctx, depth)
                if converted:
                    cells.append(TableCell(tuple(converted), style=ctx))
                continue

            cell_depth = self._descend(depth)
            declarations = parse_style_attribute(child.attrs.get("style", ""))
            if self._is_hidden(child, declarations):
                continue
            cell_ctx = self._presentation(child, declarations, ctx)
            if kind == "table_header_cell":
                cell_ctx = cell_ctx.with_style(bold=True)
            cells.append(
                TableCell(
                    self._children(child, cell_ctx, cell_depth),
                    colspan=_span(child.attrs.get("colspan"), MAX_COLSPAN),
                    rowspan=_span(child.attrs.get("rowspan"), MAX_ROWSPAN),
                    style=cell_ctx,
                )
            )
        return TableRow(tuple(cells), ctx)


def build_render_tree(dom: DomNode, config: RenderConfig | None = None) -> Block:
    """Build the render tree for *dom*."""
    return RenderTreeBuilder(config).build(dom)
