"""termhtml: render HTML documents as width-constrained terminal text."""

# Convenience API
from termhtml.api import (
    from_html,
    render_lines,
    to_decorated,
    to_plain,
    to_structured,
)

# Render tree
from termhtml.builder import RenderTreeBuilder, build_render_tree

# Colors
from termhtml.colors import parse_color, resolve_color

# Configuration
from termhtml.config import ColorMode, LinkMode, Palette, RenderConfig, max_depth_ceiling

# Input boundary
from termhtml.dom import DomNode, Element, from_soup, parse_html

# Errors
from termhtml.errors import (
    ConfigError,
    InvalidWidthError,
    NestingDepthError,
    TermHtmlError,
)

# Layout
from termhtml.layout import LayoutEngine, layout, rewrap
from termhtml.lines import Fragment, ImageAlt, LinkTarget, Style, TaggedLine
from termhtml.lists import layout_list
from termhtml.tables import TableLayout, layout_table

# Output
from termhtml.render import AnnotatedSpan, RenderedLine, Renderer, links

# Utilities
from termhtml.utils import visible_width

__all__ = [
    # Convenience API
    "from_html",
    "render_lines",
    "to_decorated",
    "to_plain",
    "to_structured",
    # Render tree
    "RenderTreeBuilder",
    "build_render_tree",
    # Colors
    "parse_color",
    "resolve_color",
    # Configuration
    "ColorMode",
    "LinkMode",
    "Palette",
    "RenderConfig",
    "max_depth_ceiling",
    # Input boundary
    "DomNode",
    "Element",
    "from_soup",
    "parse_html",
    # Errors
    "ConfigError",
    "InvalidWidthError",
    "NestingDepthError",
    "TermHtmlError",
    # Layout
    "Fragment",
    "ImageAlt",
    "LayoutEngine",
    "LinkTarget",
    "Style",
    "TableLayout",
    "TaggedLine",
    "layout",
    "layout_list",
    "layout_table",
    "rewrap",
    # Output
    "AnnotatedSpan",
    "RenderedLine",
    "Renderer",
    "links",
    # Utilities
    "visible_width",
]
