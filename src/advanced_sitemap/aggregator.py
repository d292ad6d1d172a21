"""Sitemap aggregation engine.

The aggregator owns the mapping from bucket name to accumulated entries. It is
fed continuously while sources drain and rendered once at the end:

    add_entry   sole mutation path; first entry per URL wins within a bucket
    paginate    split a bucket into pages of at most `max_entries`
    render      index document plus one document per physical sitemap

Buckets keep insertion order (dicts keyed by URL), so pagination is stable
across runs for identical input.

Concurrency:
    `add_entry` performs a check-then-insert and is not safe for concurrent
    callers. Parallel ingestion would need one serialized writer per bucket.
"""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional
from urllib.parse import urljoin, urlparse

from .defaults import (
    MAX_ENTRIES_PER_SITEMAP,
    RESOURCE_PLACEHOLDER,
    RESOURCES_OUTPUT,
    STYLESHEET_FILE,
)
from .models.sitemap import (
    CanonicalEntry,
    PhysicalSitemap,
    RenderedSitemaps,
    SitemapIndexEntry,
    SitemapSource,
)
from .xml_renderer import render_index_xml, render_sitemap_xml

logger = logging.getLogger(__name__)

__all__ = ["RenderConfig", "SitemapAggregator", "resource_file", "resource_url"]


@dataclass
class RenderConfig:
    site_url: str
    sources: List[SitemapSource] = field(default_factory=list)
    path_prefix: str = ""
    resources_output: str = RESOURCES_OUTPUT
    stylesheet: str = STYLESHEET_FILE


def resource_file(resources_output: str, resource_name: str) -> str:
    """File name of a resource, e.g. `/sitemap-:resource.xml` -> `/sitemap-posts.xml`."""
    return resources_output.replace(RESOURCE_PLACEHOLDER, resource_name, 1)


def resource_url(config: RenderConfig, resource_name: str) -> str:
    file_path = resource_file(config.resources_output, resource_name).lstrip("/")
    # Resolved from the site root; any path in site_url is ignored.
    return urljoin(config.site_url, posixpath.join("/", config.path_prefix.strip("/"), file_path))


def _is_absolute(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


class SitemapAggregator:
    """Accumulates canonical entries per bucket and renders sitemap documents."""

    def __init__(self, max_entries: int = MAX_ENTRIES_PER_SITEMAP):
        if max_entries <= 0:
            raise ValueError("max_entries must be a positive integer")
        self.max_entries = max_entries
        self._buckets: Dict[str, Dict[str, CanonicalEntry]] = {}
        self._dropped = 0

    def add_entry(self, bucket_name: str, entry: CanonicalEntry) -> None:
        """Append `entry` to the bucket unless its URL is already present."""
        bucket = self._buckets.setdefault(bucket_name, {})
        if entry.url in bucket:
            self._dropped += 1
            logger.debug("Duplicate URL dropped from bucket %s: %s", bucket_name, entry.url)
            return
        bucket[entry.url] = entry

    def bucket(self, bucket_name: str) -> List[CanonicalEntry]:
        return list(self._buckets.get(bucket_name, {}).values())

    def bucket_names(self) -> List[str]:
        return list(self._buckets.keys())

    @property
    def duplicates_dropped(self) -> int:
        return self._dropped

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets.values())

    def __iter__(self) -> Iterator[CanonicalEntry]:
        for bucket in self._buckets.values():
            yield from bucket.values()

    def paginate(
        self, bucket_name: str, resource_name: Optional[str] = None
    ) -> List[PhysicalSitemap]:
        """Split a bucket into consecutive pages of at most `max_entries`.

        The resource name gets a 1-based `-<page>` suffix only when the bucket
        spans more than one page. Empty buckets yield no pages.
        """
        entries = self.bucket(bucket_name)
        base_name = resource_name or bucket_name
        chunks = [
            entries[i : i + self.max_entries]
            for i in range(0, len(entries), self.max_entries)
        ]
        paginated = len(chunks) > 1
        return [
            PhysicalSitemap(
                bucket_name=bucket_name,
                resource_name=f"{base_name}-{index}" if paginated else base_name,
                page_index=index,
                entries=chunk,
            )
            for index, chunk in enumerate(chunks, start=1)
        ]

    def render(
        self, config: RenderConfig, now: Optional[datetime] = None
    ) -> RenderedSitemaps:
        """Render every referenced, non-empty bucket plus the index.

        Buckets no source references are dropped. `now` stands in for the
        lastmod of sitemaps without dated entries and of external sitemaps.
        """
        build_time = now or datetime.now(timezone.utc)
        physical_documents = []
        index_entries: List[SitemapIndexEntry] = []

        referenced = {s.sitemap for s in config.sources if not s.is_external}
        for name in self.bucket_names():
            if name not in referenced:
                logger.info(
                    "Bucket %s is not referenced by any mapping; %d entr(y/ies) dropped",
                    name,
                    len(self._buckets[name]),
                )

        for source in config.sources:
            if source.url is not None:
                url = source.url if _is_absolute(source.url) else urljoin(config.site_url, source.url)
                index_entries.append(SitemapIndexEntry(url=url, last_modified=build_time))
                continue
            for page in self.paginate(source.sitemap or source.name, source.name):
                document = render_sitemap_xml(page.entries, config.stylesheet)
                physical_documents.append((page, document))
                index_entries.append(
                    SitemapIndexEntry(
                        url=resource_url(config, page.resource_name),
                        last_modified=page.last_modified or build_time,
                    )
                )

        logger.info(
            "Rendered %d sitemap file(s) and %d index entr(y/ies)",
            len(physical_documents),
            len(index_entries),
        )
        return RenderedSitemaps(
            index_document=render_index_xml(index_entries, config.stylesheet),
            index_entries=index_entries,
            physical_documents=physical_documents,
        )
