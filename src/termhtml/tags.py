"""The fixed tag -> render kind table.

Every element name resolves to exactly one :data:`TagKind`. Names missing from
the table are transparent inline wrappers.
"""

from __future__ import annotations

from typing import Literal, get_args

TagKind = Literal[
    "block",
    "paragraph",
    "heading",
    "inline",
    "bold",
    "italic",
    "underline",
    "strikethrough",
    "code",
    "link",
    "unordered_list",
    "ordered_list",
    "list_item",
    "table",
    "table_section",
    "table_row",
    "table_cell",
    "table_header_cell",
    "caption",
    "image",
    "line_break",
    "rule",
    "preformatted",
    "blockquote",
    "suppress",
]

TAG_KINDS: frozenset[str] = frozenset(get_args(TagKind))

_BLOCK_TAGS = (
    "html", "body", "div", "section", "article", "header", "footer", "nav",
    "main", "aside", "figure", "figcaption", "address", "form", "fieldset",
    "details", "summary", "center", "dl", "dt", "dd", "hgroup", "legend",
)
_SUPPRESSED_TAGS = (
    "head", "title", "meta", "link", "base", "script", "style", "template",
    "iframe", "object", "embed", "svg", "canvas",
)

DEFAULT_TAG_KINDS: dict[str, TagKind] = {
    **{tag: "block" for tag in _BLOCK_TAGS},
    **{tag: "suppress" for tag in _SUPPRESSED_TAGS},
    "p": "paragraph",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "b": "bold",
    "strong": "bold",
    "i": "italic",
    "em": "italic",
    "cite": "italic",
    "var": "italic",
    "dfn": "italic",
    "u": "underline",
    "ins": "underline",
    "s": "strikethrough",
    "strike": "strikethrough",
    "del": "strikethrough",
    "code": "code",
    "kbd": "code",
    "samp": "code",
    "tt": "code",
    "a": "link",
    "ul": "unordered_list",
    "menu": "unordered_list",
    "dir": "unordered_list",
    "ol": "ordered_list",
    "li": "list_item",
    "table": "table",
    "thead": "table_section",
    "tbody": "table_section",
    "tfoot": "table_section",
    "tr": "table_row",
    "td": "table_cell",
    "th": "table_header_cell",
    "caption": "caption",
    "img": "image",
    "br": "line_break",
    "hr": "rule",
    "pre": "preformatted",
    "listing": "preformatted",
    "xmp": "preformatted",
    "plaintext": "preformatted",
    "blockquote": "blockquote",
}
