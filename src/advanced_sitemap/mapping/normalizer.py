"""Normalization of heterogeneous source records into canonical sitemap entries.

Each query result is a connection of `{node}` edges whose node shape is owned
by the data source. This module turns those nodes into `CanonicalEntry`
objects the aggregator can store:

    1. custom serializer (once per source, whole edge list in, list out)
    2. markdown/mdx nodes take slug and metadata from `fields`/`frontmatter`
    3. path from the mapping path template, or the slug itself
    4. mapping prefix prepended
    5. path reconciled with the paths the build actually generated
    6. absolute URL resolved against the site URL
    7. lastmod and image carried over

All functions are pure apart from debug logging.
"""
from __future__ import annotations

import logging
import posixpath
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set
from urllib.parse import urljoin

from ..defaults import PAGES_BUCKET
from ..errors import SitemapConfigurationError
from ..models.options import MappingRule
from ..models.sitemap import CanonicalEntry, SourceRecord
from .time_utils import parse_timestamp

logger = logging.getLogger(__name__)

LASTMOD_FIELDS = ("updated_at", "published_at", "created_at")
# Cover first: authors have a cover, everything else only an image.
IMAGE_FIELDS = ("cover_image", "profile_image", "feature_image")
_FRONTMATTER_FIELDS = ("published_at", "updated_at", "feature_image")

__all__ = [
    "apply_serializer",
    "build_page_paths",
    "collect_uncaught_pages",
    "extract_image",
    "extract_last_modified",
    "normalize",
    "reconcile_path",
    "resolve_path",
    "resolve_url",
]


def resolve_url(path: str, site_url: str) -> str:
    """Resolve `path` against the site base URL (URL-constructor semantics)."""
    if not site_url:
        raise SitemapConfigurationError(
            "Missing siteUrl, you most likely forgot to set siteUrl in config when skipping defaultQuery"
        )
    return urljoin(site_url, path)


def apply_serializer(
    source_key: str, edges: List[Any], rule: Optional[MappingRule]
) -> List[Any]:
    """Run the source's custom serializer, if any, over its full edge list.

    Raises:
        SitemapConfigurationError: if the serializer does not return a list.
    """
    if rule is None or rule.serializer is None:
        return edges
    serialized = rule.serializer(edges)
    if not isinstance(serialized, list):
        raise SitemapConfigurationError(
            f"Custom sitemap serializer must return an array (source {source_key!r} "
            f"returned {type(serialized).__name__})"
        )
    logger.debug(
        "Serializer for %s returned %d of %d edge(s)", source_key, len(serialized), len(edges)
    )
    return serialized


def _markdown_fields(record: SourceRecord) -> Dict[str, Any]:
    """Lift slug and frontmatter metadata of markdown/mdx nodes to the top level."""
    fields = dict(record.fields)
    nested = fields.get("fields")
    if isinstance(nested, dict) and nested.get("slug"):
        fields["slug"] = nested["slug"]
    frontmatter = fields.get("frontmatter")
    if isinstance(frontmatter, dict):
        for key in _FRONTMATTER_FIELDS:
            if frontmatter.get(key) and not fields.get(key):
                fields[key] = frontmatter[key]
    return fields


def resolve_path(slug: str, rule: MappingRule) -> str:
    """Apply the rule's path template and prefix to a slug."""
    if rule.path:
        base = rule.path if rule.path.startswith("/") else "/" + rule.path
        path = posixpath.normpath(posixpath.join(base, slug))
    else:
        path = slug
    if isinstance(rule.prefix, str) and rule.prefix != "":
        if rule.prefix.endswith("/") and path.startswith("/"):
            path = path[1:]
        path = rule.prefix + path
    return path


def build_page_paths(page_edges: Iterable[Any]) -> List[str]:
    """Build-generated page paths, trailing slash stripped, in query order, unique."""
    seen: Set[str] = set()
    paths: List[str] = []
    for edge in page_edges or []:
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict) or not node.get("url"):
            continue
        path = re.sub(r"/$", "", str(node["url"]))
        if path not in seen:
            seen.add(path)
            paths.append(path)
    return paths


def reconcile_path(path: str, page_paths: Optional[List[str]]) -> str:
    """Replace `path` with the first generated page path ending in it.

    Static site generators may rewrite paths (trailing slashes, locale
    prefixes); the generated path is the one that actually resolves.
    """
    if not page_paths or not path or path == "/":
        return path
    pattern = re.compile(re.escape(re.sub(r"/$", "", path)) + "$", re.IGNORECASE)
    for page in page_paths:
        if pattern.search(page):
            return page
    return path


def extract_last_modified(fields: Dict[str, Any]) -> Optional[datetime]:
    for key in LASTMOD_FIELDS:
        value = fields.get(key)
        if value:
            try:
                return parse_timestamp(value)
            except ValueError:
                logger.warning("Ignoring unparsable %s value %r", key, value)
    return None


def extract_image(fields: Dict[str, Any], site_url: str) -> Optional[str]:
    for key in IMAGE_FIELDS:
        value = fields.get(key)
        if isinstance(value, str) and value:
            return urljoin(site_url, value)
    return None


def normalize(
    record: SourceRecord,
    rule: MappingRule,
    site_url: str,
    page_paths: Optional[List[str]] = None,
) -> Optional[CanonicalEntry]:
    """Turn one source record into a canonical entry for `rule.sitemap`.

    Exclusions are applied before this step (see `exclusion.filter_edges`).

    Args:
        record: The tagged raw node.
        rule: Mapping rule of the record's source.
        site_url: Absolute site base URL.
        page_paths: Build-generated paths for reconciliation (optional).

    Returns:
        The entry, or None when the record has no resolvable slug.

    Raises:
        SitemapConfigurationError: if no site URL is available.
    """
    fields = _markdown_fields(record) if record.is_markdown else record.fields
    slug = fields.get("slug")
    if slug is None or slug == "":
        logger.debug("Skipping %s record without slug (id=%s)", record.type_tag, fields.get("id"))
        return None
    path = resolve_path(str(slug), rule)
    path = reconcile_path(path, page_paths)
    return CanonicalEntry(
        url=resolve_url(path, site_url),
        path=path,
        bucket_name=rule.sitemap,
        last_modified=extract_last_modified(fields),
        image=extract_image(fields, site_url),
    )


def collect_uncaught_pages(
    page_edges: Iterable[Any],
    claimed_paths: Iterable[str],
    site_url: str,
) -> List[CanonicalEntry]:
    """Entries for generated pages no mapped record claimed, for the `pages` bucket."""
    claimed = {re.sub(r"/$", "", p) for p in claimed_paths}
    entries: List[CanonicalEntry] = []
    for edge in page_edges or []:
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict) or not node.get("url"):
            continue
        url_path = str(node["url"])
        if re.sub(r"/$", "", url_path) in claimed:
            continue
        entries.append(
            CanonicalEntry(
                url=resolve_url(url_path, site_url),
                path=url_path,
                bucket_name=PAGES_BUCKET,
                last_modified=extract_last_modified(node),
                image=extract_image(node, site_url),
            )
        )
    return entries
