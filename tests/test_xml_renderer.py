from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone

from advanced_sitemap.mapping.time_utils import format_lastmod, parse_timestamp
from advanced_sitemap.models.sitemap import CanonicalEntry, SitemapIndexEntry
from advanced_sitemap.xml_renderer import render_index_xml, render_sitemap_xml

SM = "{http://www.sitemaps.org/schemas/sitemap/0.9}"
IMG = "{http://www.google.com/schemas/sitemap-image/1.1}"


def _root(document: str) -> ET.Element:
    return ET.fromstring(document.split("?>", 2)[2])


def test_sitemap_prologue_references_stylesheet():
    doc = render_sitemap_xml([], "/blog/sitemap.xsl")
    assert doc.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert '<?xml-stylesheet type="text/xsl" href="/blog/sitemap.xsl"?>' in doc


def test_empty_sitemap_and_index_are_well_formed():
    assert _root(render_sitemap_xml([])).tag == f"{SM}urlset"
    index = _root(render_index_xml([]))
    assert index.tag == f"{SM}sitemapindex"
    assert list(index) == []


def test_url_elements_with_lastmod_and_image():
    entries = [
        CanonicalEntry(
            url="https://example.com/a?x=1&y=2",
            path="a",
            bucket_name="posts",
            last_modified=datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc),
            image="https://cdn.example.com/images/cover.jpg",
        ),
        CanonicalEntry(url="https://example.com/b", path="b", bucket_name="posts"),
    ]
    root = _root(render_sitemap_xml(entries))
    urls = root.findall(f"{SM}url")
    assert len(urls) == 2
    assert urls[0].findtext(f"{SM}loc") == "https://example.com/a?x=1&y=2"
    assert urls[0].findtext(f"{SM}lastmod") == "2024-02-03T04:05:06.000Z"
    image = urls[0].find(f"{IMG}image")
    assert image.findtext(f"{IMG}loc") == "https://cdn.example.com/images/cover.jpg"
    assert image.findtext(f"{IMG}caption") == "cover.jpg"
    assert urls[1].find(f"{SM}lastmod") is None
    assert urls[1].find(f"{IMG}image") is None


def test_index_elements():
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    root = _root(
        render_index_xml(
            [
                SitemapIndexEntry(url="https://example.com/sitemap-posts.xml", last_modified=stamp),
                SitemapIndexEntry(url="https://example.com/sitemap-pages.xml", last_modified=stamp),
            ]
        )
    )
    sitemaps = root.findall(f"{SM}sitemap")
    assert [s.findtext(f"{SM}loc") for s in sitemaps] == [
        "https://example.com/sitemap-posts.xml",
        "https://example.com/sitemap-pages.xml",
    ]
    assert sitemaps[0].findtext(f"{SM}lastmod") == "2024-01-01T00:00:00.000Z"


def test_rendering_is_deterministic():
    entries = [CanonicalEntry(url="https://example.com/a", path="a", bucket_name="posts")]
    assert render_sitemap_xml(entries) == render_sitemap_xml(list(entries))


def test_format_lastmod_converts_offsets_to_utc():
    cet = timezone(timedelta(hours=1))
    assert format_lastmod(datetime(2024, 1, 1, 1, 0, tzinfo=cet)) == "2024-01-01T00:00:00.000Z"


def test_parse_timestamp_variants():
    expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert parse_timestamp(1_700_000_000) == expected
    assert parse_timestamp(1_700_000_000_000) == expected
    assert parse_timestamp("2023-11-14T22:13:20Z") == expected
    assert parse_timestamp("2023-11-14T23:13:20+01:00") == expected
    assert parse_timestamp("") is None
