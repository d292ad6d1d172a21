"""Pydantic models for records flowing through the sitemap pipeline.

`SourceRecord` wraps a raw node returned by a query. `CanonicalEntry` is the
normalized form the aggregator stores. `PhysicalSitemap`, `SitemapIndexEntry`
and `RenderedSitemaps` are derived at render time and never persisted.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..defaults import MARKDOWN_SOURCE_TYPES


class SourceRecord(BaseModel):
    """A raw node tagged with the source type it came from.

    The tag is `"all" + __typename` when the node declares its GraphQL type,
    otherwise the key of the query result it was read from.
    """

    model_config = ConfigDict(frozen=True)

    type_tag: str
    fields: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_node(cls, source_key: str, node: Dict[str, Any]) -> "SourceRecord":
        typename = node.get("__typename")
        type_tag = f"all{typename}" if typename else source_key
        return cls(type_tag=type_tag, fields=node)

    @property
    def is_markdown(self) -> bool:
        return self.type_tag in MARKDOWN_SOURCE_TYPES

    @property
    def slug(self) -> Optional[str]:
        """Locator of the record: `fields.slug` for markdown-like nodes, else `slug`."""
        nested = self.fields.get("fields")
        if isinstance(nested, dict) and nested.get("slug"):
            return str(nested["slug"])
        if self.is_markdown:
            return None
        slug = self.fields.get("slug")
        if slug is None or slug == "":
            return None
        return str(slug)


class CanonicalEntry(BaseModel):
    """One URL destined for a sitemap bucket."""

    model_config = ConfigDict(frozen=True)

    url: str
    path: str
    bucket_name: str
    last_modified: Optional[datetime] = None
    image: Optional[str] = None


class SitemapSource(BaseModel):
    """A resource listed in the index.

    Mapped sources carry the bucket (`sitemap`) they render; external sources
    carry only a `url` and are referenced verbatim.
    """

    name: str
    sitemap: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.url is not None


class PhysicalSitemap(BaseModel):
    """One page of a bucket, rendered as one XML file."""

    bucket_name: str
    resource_name: str
    page_index: int
    entries: List[CanonicalEntry] = Field(default_factory=list)

    @property
    def last_modified(self) -> Optional[datetime]:
        stamps = [e.last_modified for e in self.entries if e.last_modified is not None]
        return max(stamps) if stamps else None


class SitemapIndexEntry(BaseModel):
    url: str
    last_modified: datetime


class RenderedSitemaps(BaseModel):
    """Final render output: the index plus one document per physical sitemap."""

    index_document: str
    index_entries: List[SitemapIndexEntry] = Field(default_factory=list)
    physical_documents: List[Tuple[PhysicalSitemap, str]] = Field(default_factory=list)


__all__ = [
    "SourceRecord",
    "CanonicalEntry",
    "SitemapSource",
    "PhysicalSitemap",
    "SitemapIndexEntry",
    "RenderedSitemaps",
]
