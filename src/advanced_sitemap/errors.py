"""Exception taxonomy for sitemap generation.

Configuration mistakes and failed queries abort the build; they never degrade
into silently missing sitemap entries. Per-file write failures are not
exceptions at all: the writer logs them and reports a boolean.
"""
from __future__ import annotations

__all__ = ["SitemapError", "SitemapConfigurationError", "QueryExecutionError"]


class SitemapError(Exception):
    """Base class for all errors raised by advanced-sitemap."""


class SitemapConfigurationError(SitemapError, ValueError):
    """Invalid or incomplete build configuration (site URL, rules, serializers)."""


class QueryExecutionError(SitemapError, RuntimeError):
    """A query failed and no fallback remained."""

    def __init__(self, message: str, query_name: str | None = None):
        super().__init__(message)
        self.query_name = query_name
