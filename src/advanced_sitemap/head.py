"""`<link rel="sitemap">` tag for the document head."""
from __future__ import annotations

import posixpath
from xml.sax.saxutils import quoteattr

from .defaults import INDEX_OUTPUT

__all__ = ["sitemap_href", "sitemap_link_tag"]


def sitemap_href(output: str = INDEX_OUTPUT, path_prefix: str = "") -> str:
    return posixpath.join("/", path_prefix.strip("/"), output.lstrip("/"))


def sitemap_link_tag(output: str = INDEX_OUTPUT, path_prefix: str = "") -> str:
    href = quoteattr(sitemap_href(output, path_prefix))
    return f'<link rel="sitemap" type="application/xml" href={href}/>'
