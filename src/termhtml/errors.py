"""Exceptions raised for caller-input errors.

Malformed markup never raises; it degrades. Only a bad width, a bad
configuration value, or a document nested deeper than the configured bound
surface as exceptions.
"""

from __future__ import annotations


class TermHtmlError(Exception):
    """Base class for all termhtml errors."""


class InvalidWidthError(TermHtmlError, ValueError):
    """Raised when a requested width is not a positive integer."""

    def __init__(self, width: object) -> None:
        super().__init__(f"width must be a positive integer, got {width!r}")
        self.width = width


class ConfigError(TermHtmlError, ValueError):
    """Raised for an unrecognized configuration value."""


class NestingDepthError(TermHtmlError):
    """Raised when a document nests deeper than the configured limit."""

    def __init__(self, depth: int, limit: int) -> None:
        super().__init__(f"nesting depth {depth} exceeds the limit of {limit}")
        self.depth = depth
        self.limit = limit
