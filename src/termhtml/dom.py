"""Input boundary: the parsed document tree.

The core consumes any object shaped like :class:`DomNode`. Node names follow
DOM conventions: elements use their lower-case tag name, text nodes are
``"#text"``, comments ``"#comment"`` and the root ``"#document"``.

:func:`parse_html` is a convenience that runs BeautifulSoup and converts the
result with :func:`from_soup`; tokenizing itself is left to that parser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Sequence

from bs4 import BeautifulSoup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)

TEXT = "#text"
COMMENT = "#comment"
DOCUMENT = "#document"

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


class DomNode(Protocol):
    """A materialized document node."""

    @property
    def tag(self) -> str: ...

    @property
    def attrs(self) -> Mapping[str, str]: ...

    @property
    def children(self) -> Sequence[DomNode]: ...

    @property
    def text(self) -> str: ...


@dataclass(frozen=True)
class Element:
    """Concrete immutable :class:`DomNode`."""

    tag: str
    attrs: Mapping[str, str] = field(default_factory=dict)
    children: tuple[Element, ...] = ()
    text: str = ""

    @classmethod
    def text_node(cls, text: str) -> Element:
        return cls(TEXT, text=text)


def from_soup(root: Tag) -> Element:
    """Convert a BeautifulSoup tree into :class:`Element` nodes.

    Walks with an explicit stack, so arbitrarily deep markup converts without
    hitting the interpreter's recursion limit; the depth bound is enforced
    later by the render tree builder.
    """
    # Each frame: (soup tag, converted children so far, next child index).
    stack: list[tuple[Tag, list[Element], int]] = [(root, [], 0)]
    converted: Element | None = None

    while stack:
        tag, children, index = stack[-1]
        contents = tag.contents
        if index < len(contents):
            stack[-1] = (tag, children, index + 1)
            child = contents[index]
            if isinstance(child, Tag):
                stack.append((child, [], 0))
            elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
                children.append(Element.text_node(str(child)))
            continue

        stack.pop()
        name = DOCUMENT if isinstance(tag, BeautifulSoup) else tag.name.lower()
        converted = Element(name, _attrs(tag), tuple(children))
        if stack:
            stack[-1][1].append(converted)

    assert converted is not None
    return converted


def parse_html(markup: str, features: str = "html.parser") -> Element:
    """Parse *markup* with BeautifulSoup and return the document node."""
    soup = BeautifulSoup(markup, features)
    return from_soup(soup)


def _attrs(tag: Tag) -> dict[str, str]:
    result: dict[str, str] = {}
    for name, value in (tag.attrs or {}).items():
        # Multi-valued attributes (class, rel, ...) come back as lists.
        if isinstance(value, (list, tuple)):
            value = " ".join(value)
        result[name.lower()] = "" if value is None else str(value)
    return result
