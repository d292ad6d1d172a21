"""Sitemap and sitemap-index XML rendering.

Both documents start with an XML declaration and an `xml-stylesheet`
processing instruction so browsers render them through the site's XSL
stylesheet. Rendering is pure: the same entries always produce the same
bytes, and an empty entry list produces an empty (but well-formed) root.
"""
from __future__ import annotations

import posixpath
from typing import Iterable
from urllib.parse import urlparse
from xml.etree.ElementTree import Element, SubElement, tostring
from xml.sax.saxutils import escape

from .defaults import IMAGE_NS, SITEMAP_NS, STYLESHEET_FILE
from .mapping.time_utils import format_lastmod
from .models.sitemap import CanonicalEntry, SitemapIndexEntry

__all__ = ["declarations", "render_index_xml", "render_sitemap_xml"]


def declarations(stylesheet: str = STYLESHEET_FILE) -> str:
    href = escape(stylesheet, {'"': "&quot;"})
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<?xml-stylesheet type="text/xsl" href="{href}"?>'
    )


def _image_caption(image_url: str) -> str:
    return posixpath.basename(urlparse(image_url).path)


def render_sitemap_xml(
    entries: Iterable[CanonicalEntry], stylesheet: str = STYLESHEET_FILE
) -> str:
    """Render a `<urlset>` document with image extension elements."""
    urlset = Element("urlset")
    urlset.set("xmlns", SITEMAP_NS)
    urlset.set("xmlns:image", IMAGE_NS)

    for entry in entries:
        url_el = SubElement(urlset, "url")
        SubElement(url_el, "loc").text = entry.url
        if entry.last_modified is not None:
            SubElement(url_el, "lastmod").text = format_lastmod(entry.last_modified)
        if entry.image:
            image_el = SubElement(url_el, "image:image")
            SubElement(image_el, "image:loc").text = entry.image
            SubElement(image_el, "image:caption").text = _image_caption(entry.image)

    return declarations(stylesheet) + tostring(urlset, encoding="unicode")


def render_index_xml(
    index_entries: Iterable[SitemapIndexEntry], stylesheet: str = STYLESHEET_FILE
) -> str:
    """Render a `<sitemapindex>` document listing every sitemap file."""
    root = Element("sitemapindex")
    root.set("xmlns", SITEMAP_NS)

    for item in index_entries:
        sitemap_el = SubElement(root, "sitemap")
        SubElement(sitemap_el, "loc").text = item.url
        SubElement(sitemap_el, "lastmod").text = format_lastmod(item.last_modified)

    return declarations(stylesheet) + tostring(root, encoding="unicode")
