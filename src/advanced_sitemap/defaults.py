"""Static defaults shared by the build pipeline.

These mirror the option defaults a site gets when it configures nothing but
its site URL: a single `pages` sitemap fed by every page the build generated,
with the usual development and error pages excluded.
"""
from __future__ import annotations

from typing import Any, Dict, List

# Sitemap protocol limit per physical file. Independent of the query page size.
MAX_ENTRIES_PER_SITEMAP = 50_000

DEFAULT_QUERY = """
{
    allSitePage {
        edges {
            node {
                id
                slug: path
                url: path
            }
        }
    }
    site {
        siteMetadata {
            siteUrl
        }
    }
}
"""

PAGES_SOURCE = "allSitePage"
PAGES_BUCKET = "pages"

DEFAULT_MAPPING: Dict[str, Dict[str, Any]] = {
    PAGES_SOURCE: {"sitemap": PAGES_BUCKET},
}

DEFAULT_EXCLUDE: List[str] = [
    "/dev-404-page",
    "/404",
    "/404.html",
    "/offline-plugin-app-shell-fallback",
]

INDEX_OUTPUT = "/sitemap.xml"
RESOURCES_OUTPUT = "/sitemap-:resource.xml"
RESOURCE_PLACEHOLDER = ":resource"
STYLESHEET_FILE = "sitemap.xsl"
PUBLIC_PATH = "public"

DEFAULT_SPLIT_QUERY_PAGE_SIZE = 100
DEFAULT_QUERY_DELAY_SECONDS = 1.0

# Source types whose slug lives under `fields.slug` with metadata in `frontmatter`.
MARKDOWN_SOURCE_TYPES = frozenset({"allMarkdownRemark", "allMdx"})

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"

__all__ = [
    "MAX_ENTRIES_PER_SITEMAP",
    "DEFAULT_QUERY",
    "PAGES_SOURCE",
    "PAGES_BUCKET",
    "DEFAULT_MAPPING",
    "DEFAULT_EXCLUDE",
    "INDEX_OUTPUT",
    "RESOURCES_OUTPUT",
    "RESOURCE_PLACEHOLDER",
    "STYLESHEET_FILE",
    "PUBLIC_PATH",
    "DEFAULT_SPLIT_QUERY_PAGE_SIZE",
    "DEFAULT_QUERY_DELAY_SECONDS",
    "MARKDOWN_SOURCE_TYPES",
    "SITEMAP_NS",
    "IMAGE_NS",
]
