"""List layout: markers, hanging indents and nested numbering."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from termhtml.lines import Fragment, TaggedLine
from termhtml.nodes import List
from termhtml.utils import visible_width

if TYPE_CHECKING:
    from termhtml.layout import LayoutEngine

# Unordered markers, cycled by nesting depth.
BULLETS = ("*", "-", "+")


def list_markers(node: List) -> list[str]:
    """Return the marker for each item of *node*.

    Ordered markers are left-aligned and padded to the widest marker so item
    bodies line up.
    """
    if not node.ordered:
        return [BULLETS[node.style.indent % len(BULLETS)]] * len(node.items)
    labels = [f"{node.start + offset}." for offset in range(len(node.items))]
    widest = max((visible_width(label) for label in labels), default=0)
    return [label.ljust(widest) for label in labels]


def prefix_lines(lines: Sequence[TaggedLine], first: str, rest: str) -> list[TaggedLine]:
    """Prefix the first line with *first* and the others with *rest*.

    Blank continuation lines get no padding. With no lines at all the result
    is the bare first prefix.
    """
    if not lines:
        return [TaggedLine.build([Fragment(first.rstrip())], verbatim=True)]
    result: list[TaggedLine] = []
    for index, line in enumerate(lines):
        if index == 0:
            result.append(line.prefixed(first))
        elif line.is_blank:
            result.append(line)
        else:
            result.append(line.prefixed(rest))
    return result


def layout_list(node: List, width: int, engine: LayoutEngine, depth: int = 0) -> list[TaggedLine]:
    """Lay out every item of *node* under its marker."""
    lines: list[TaggedLine] = []
    for item, marker in zip(node.items, list_markers(node)):
        first = marker + " "
        marker_width = visible_width(first)
        body = engine.layout_children(item.children, max(1, width - marker_width), depth + 1)
        lines.extend(prefix_lines(body, first, " " * marker_width))
    return lines
