"""Pydantic models for sitemap options and pipeline records."""
from __future__ import annotations

from .options import AdditionalSitemap, MappingRule, SitemapOptions, load_options
from .sitemap import (
    CanonicalEntry,
    PhysicalSitemap,
    RenderedSitemaps,
    SitemapIndexEntry,
    SitemapSource,
    SourceRecord,
)

__all__ = [
    "AdditionalSitemap",
    "CanonicalEntry",
    "MappingRule",
    "PhysicalSitemap",
    "RenderedSitemaps",
    "SitemapIndexEntry",
    "SitemapOptions",
    "SitemapSource",
    "SourceRecord",
    "load_options",
]
