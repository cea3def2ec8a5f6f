"""Render tree node types.

The render tree is a closed set of immutable variants. Each node carries the
:class:`StyleContext` in effect for its content, resolved once by the builder;
layout never has to look at ancestors.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from termhtml.lines import Annotation, LinkTarget, Style


# ---------------------------------------------------------------------------
# StyleContext
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StyleContext:
    """Inherited style, link and indent state.

    Extended (never mutated) at each descent with the ``with_*`` helpers.
    ``indent`` counts the lists enclosing a node.
    """

    style: Style = Style()
    link: str | None = None
    indent: int = 0

    def with_style(self, **changes: object) -> StyleContext:
        return replace(self, style=replace(self.style, **changes))

    def with_link(self, target: str) -> StyleContext:
        return replace(self, link=target)

    def indented(self) -> StyleContext:
        return replace(self, indent=self.indent + 1)

    def annotations(self, *, include_link: bool = True) -> tuple[Annotation, ...]:
        """Annotations for text in this context, outermost first."""
        result: list[Annotation] = []
        if include_link and self.link:
            result.append(LinkTarget(self.link))
        if not self.style.is_plain:
            result.append(self.style)
        return tuple(result)


ROOT_CONTEXT = StyleContext()


# ---------------------------------------------------------------------------
# Node variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Text:
    text: str
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class Block:
    """Block container. ``margin`` blocks are set off by a blank line."""

    children: tuple[RenderNode, ...]
    margin: bool = False
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class Inline:
    children: tuple[RenderNode, ...]
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class ListItem:
    children: tuple[RenderNode, ...]
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class List:
    items: tuple[ListItem, ...]
    ordered: bool = False
    start: int = 1
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class TableCell:
    children: tuple[RenderNode, ...]
    colspan: int = 1
    rowspan: int = 1
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class TableRow:
    cells: tuple[TableCell, ...]
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class Table:
    rows: tuple[TableRow, ...]
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class Link:
    children: tuple[RenderNode, ...]
    target: str
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class Image:
    alt: str
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class LineBreak:
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class HorizontalRule:
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class Preformatted:
    text: str
    style: StyleContext = ROOT_CONTEXT


@dataclass(frozen=True)
class BlockQuote:
    children: tuple[RenderNode, ...]
    style: StyleContext = ROOT_CONTEXT


RenderNode = Union[
    Text,
    Block,
    Inline,
    List,
    ListItem,
    Table,
    TableRow,
    TableCell,
    Link,
    Image,
    LineBreak,
    HorizontalRule,
    Preformatted,
    BlockQuote,
]
