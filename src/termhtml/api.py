"""One-call entry points: DOM or markup in, rendered text out."""

from __future__ import annotations

from typing import Literal, get_args

from termhtml.builder import build_render_tree
from termhtml.config import RenderConfig
from termhtml.dom import DomNode, parse_html
from termhtml.errors import ConfigError
from termhtml.layout import layout
from termhtml.lines import TaggedLine
from termhtml.render import RenderedLine, Renderer

OutputMode = Literal["plain", "decorated", "structured"]

OUTPUT_MODES: frozenset[str] = frozenset(get_args(OutputMode))


def render_lines(dom: DomNode, config: RenderConfig | None = None) -> list[TaggedLine]:
    """Build and lay out *dom*, returning the annotated lines."""
    config = config or RenderConfig()
    return layout(build_render_tree(dom, config), config.width, config)


def to_plain(dom: DomNode, config: RenderConfig | None = None) -> str:
    config = config or RenderConfig()
    return Renderer(config).plain(render_lines(dom, config))


def to_decorated(dom: DomNode, config: RenderConfig | None = None) -> str:
    config = config or RenderConfig()
    return Renderer(config).decorated(render_lines(dom, config))


def to_structured(dom: DomNode, config: RenderConfig | None = None) -> list[RenderedLine]:
    config = config or RenderConfig()
    return Renderer(config).structured(render_lines(dom, config))


def from_html(
    markup: str,
    width: int = 80,
    *,
    mode: OutputMode = "plain",
    **options: object,
) -> str | list[RenderedLine]:
    """Parse *markup* and render it at *width* columns.

    Extra keyword arguments are :class:`~termhtml.config.RenderConfig`
    fields, e.g. ``link_mode="footnote"`` or ``color_mode="ansi256"``.
    """
    if mode not in OUTPUT_MODES:
        raise ConfigError(f"unknown output mode {mode!r}; expected one of {sorted(OUTPUT_MODES)}")
    config = RenderConfig(width=width, **options)  # type: ignore[arg-type]
    dom = parse_html(markup)
    if mode == "decorated":
        return to_decorated(dom, config)
    if mode == "structured":
        return to_structured(dom, config)
    return to_plain(dom, config)
