"""Sitemap build pipeline.

This module wires the components together for one build:

1.  Validate exclusion rules (fatal on invalid configuration).
2.  Run the default query (generated pages + site metadata) unless it is
    skipped in favour of a custom query.
3.  Run the custom queries through the sequential/paginated runner.
4.  Apply custom serializers and exclusions per source.
5.  Normalize records into canonical entries and feed the aggregator,
    collecting uncaught generated pages into the `pages` bucket.
6.  Render the index and every physical sitemap.
7.  Write the documents best-effort through the file writer.

Nothing is written until every query has completed and every entry has been
ingested.
"""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .aggregator import RenderConfig, SitemapAggregator, resource_file
from .defaults import (
    DEFAULT_MAPPING,
    DEFAULT_QUERY,
    DEFAULT_QUERY_DELAY_SECONDS,
    MAX_ENTRIES_PER_SITEMAP,
    PAGES_BUCKET,
    PAGES_SOURCE,
    RESOURCES_OUTPUT,
    STYLESHEET_FILE,
)
from .errors import QueryExecutionError, SitemapConfigurationError
from .mapping.exclusion import ExclusionRule, compile_exclusion_rules, filter_edges
from .mapping.normalizer import (
    apply_serializer,
    build_page_paths,
    collect_uncaught_pages,
    normalize,
)
from .mapping.sources import serialize_sources
from .models.options import MappingRule, SitemapOptions
from .models.sitemap import RenderedSitemaps, SourceRecord
from .query_client import QueryHandler
from .query_runner import QueryRunner, SleepFn
from .writer import FileWriter

logger = logging.getLogger(__name__)

__all__ = [
    "SitemapBuildResult",
    "effective_mapping",
    "generate_sitemaps",
    "ingest_sources",
    "resolve_site_url",
    "uses_default_query",
]


@dataclass
class SitemapBuildResult:
    site_url: str
    rendered: RenderedSitemaps
    entry_count: int
    written: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def uses_default_query(options: SitemapOptions) -> bool:
    return not (options.skip_default_query and options.query)


def effective_mapping(options: SitemapOptions) -> Dict[str, MappingRule]:
    """Mapping rules in effect for this build.

    Without both a custom query and a mapping the default mapping applies.
    With `addUncaughtPages` the default `allSitePage -> pages` rule is kept
    alongside user rules so the `pages` sitemap is always listed.
    """
    if not options.query or not options.mapping:
        base = dict(options.mapping) if options.mapping else {
            key: MappingRule.model_validate(rule) for key, rule in DEFAULT_MAPPING.items()
        }
    else:
        base = dict(options.mapping)
    if options.add_uncaught_pages and PAGES_SOURCE not in base:
        merged = {PAGES_SOURCE: MappingRule(sitemap=PAGES_BUCKET)}
        merged.update(base)
        return merged
    return base


def _edges(connection: Any) -> Optional[List[Any]]:
    if isinstance(connection, dict) and isinstance(connection.get("edges"), list):
        return connection["edges"]
    return None


def _prepare_sources(
    sources: Dict[str, Any],
    mapping: Dict[str, MappingRule],
    rules: List[ExclusionRule],
) -> Dict[str, Any]:
    """Apply custom serializers, then exclusions, to every source connection."""
    prepared: Dict[str, Any] = {}
    for source_key, connection in sources.items():
        edges = _edges(connection)
        if edges is None:
            prepared[source_key] = connection
            continue
        edges = apply_serializer(source_key, edges, mapping.get(source_key))
        kept = filter_edges(source_key, edges, rules)
        if len(kept) != len(edges):
            logger.info(
                "Excluded %d of %d record(s) from %s", len(edges) - len(kept), len(edges), source_key
            )
        prepared[source_key] = {**connection, "edges": kept}
    return prepared


def resolve_site_url(
    override: Optional[str], default_records: Optional[Dict[str, Any]]
) -> str:
    """Explicit site URL, else the site metadata from the default query."""
    if override:
        return override
    site = (default_records or {}).get("site")
    if isinstance(site, dict):
        metadata = site.get("siteMetadata")
        if isinstance(metadata, dict) and metadata.get("siteUrl"):
            return str(metadata["siteUrl"])
    raise SitemapConfigurationError(
        "Missing siteUrl, you most likely forgot to set siteUrl in config when skipping defaultQuery"
    )


def ingest_sources(
    aggregator: SitemapAggregator,
    sources: Dict[str, Any],
    mapping: Dict[str, MappingRule],
    site_url: str,
    page_edges: Optional[List[Any]] = None,
    *,
    add_uncaught_pages: bool = False,
) -> int:
    """Normalize every mapped source record into the aggregator.

    Returns:
        Number of entries offered to the aggregator (before deduplication).
    """
    page_paths = build_page_paths(page_edges) if page_edges else None
    claimed: List[str] = []
    offered = 0
    for source_key, connection in sources.items():
        rule = mapping.get(source_key)
        if rule is None or not rule.sitemap:
            logger.debug("No mapping for source %s; skipped", source_key)
            continue
        for edge in _edges(connection) or []:
            node = edge.get("node") if isinstance(edge, dict) else None
            if not isinstance(node, dict):
                continue
            entry = normalize(SourceRecord.from_node(source_key, node), rule, site_url, page_paths)
            if entry is None:
                continue
            aggregator.add_entry(rule.sitemap, entry)
            claimed.append(entry.path)
            offered += 1

    if add_uncaught_pages and page_edges:
        uncaught = collect_uncaught_pages(page_edges, claimed, site_url)
        for entry in uncaught:
            aggregator.add_entry(PAGES_BUCKET, entry)
        offered += len(uncaught)
        logger.info("Added %d uncaught page(s) to the %s sitemap", len(uncaught), PAGES_BUCKET)
    return offered


async def _run_wrapped(runner: QueryRunner, query: Any, label: str) -> Dict[str, Any]:
    try:
        return await runner.run_query(query)
    except QueryExecutionError as e:
        raise QueryExecutionError(
            f"Something went wrong running {label} query: {e}", query_name=e.query_name
        ) from e
    except Exception as e:
        raise QueryExecutionError(f"Something went wrong running {label} query: {e}") from e


def _write_outputs(
    writer: FileWriter,
    rendered: RenderedSitemaps,
    index_path: str,
    path_prefix: str,
    result: SitemapBuildResult,
) -> None:
    outputs = [(index_path, rendered.index_document)]
    for page, document in rendered.physical_documents:
        filename = resource_file(RESOURCES_OUTPUT, page.resource_name).lstrip("/")
        outputs.append((posixpath.join("/", path_prefix.strip("/"), filename), document))

    for path, content in outputs:
        try:
            ok = writer.write(path, content)
        except Exception as e:  # noqa: BLE001 per-file writes are best-effort
            logger.error("Failed writing %s: %s", path, e)
            ok = False
        (result.written if ok else result.failed).append(path)
    if result.failed:
        logger.warning("%d sitemap file(s) could not be written: %s", len(result.failed), result.failed)


async def generate_sitemaps(
    handler: QueryHandler,
    options: SitemapOptions,
    *,
    writer: Optional[FileWriter] = None,
    path_prefix: str = "",
    site_url: Optional[str] = None,
    page_size: Optional[int] = None,
    delay: float = DEFAULT_QUERY_DELAY_SECONDS,
    sleep: Optional[SleepFn] = None,
    now: Optional[datetime] = None,
    max_entries: int = MAX_ENTRIES_PER_SITEMAP,
) -> SitemapBuildResult:
    """Run one complete sitemap build.

    Args:
        handler: Query capability, `await handler(query, variables)`.
        options: Site sitemap options.
        writer: File writer; when None documents are rendered but not written.
        path_prefix: Path prefix the site is served under.
        site_url: Explicit site URL, takes precedence over `options.site_url`.
        page_size: Overrides `options.split_query_page_size`.
        delay: Seconds to pause between sequential queries.
        sleep: Injected awaitable sleep for the pause.
        now: Build timestamp used for undated lastmod values.
        max_entries: Per-file entry cap.

    Raises:
        SitemapConfigurationError: invalid rules, serializer output, or no site URL.
        QueryExecutionError: a query failed without a usable fallback.
    """
    build_time = now or datetime.now(timezone.utc)
    rules = compile_exclusion_rules(options.exclude)
    mapping = effective_mapping(options)
    runner = QueryRunner(
        handler,
        page_size=page_size or options.split_query_page_size,
        delay=delay,
        sleep=sleep,
    )

    default_records: Optional[Dict[str, Any]] = None
    if uses_default_query(options):
        logger.info("Run default query")
        raw_default = await _run_wrapped(runner, DEFAULT_QUERY, "default")
        default_records = _prepare_sources(raw_default, {}, rules)

    sources: Dict[str, Any] = {}
    if options.query and options.mapping:
        logger.info("Run custom query")
        raw_sources = await _run_wrapped(runner, options.query, "custom")
        sources = _prepare_sources(raw_sources, mapping, rules)

    resolved_site_url = resolve_site_url(site_url or options.site_url, default_records)
    page_edges = _edges((default_records or {}).get(PAGES_SOURCE))

    aggregator = SitemapAggregator(max_entries=max_entries)
    offered = ingest_sources(
        aggregator,
        sources,
        mapping,
        resolved_site_url,
        page_edges,
        add_uncaught_pages=options.add_uncaught_pages,
    )
    logger.info(
        "Serialized %d record(s) into %d unique entr(y/ies) across %d bucket(s)",
        offered,
        len(aggregator),
        len(aggregator.bucket_names()),
    )

    config = RenderConfig(
        site_url=resolved_site_url,
        sources=serialize_sources(mapping, options.additional_sitemaps),
        path_prefix=path_prefix,
        resources_output=RESOURCES_OUTPUT,
        stylesheet=posixpath.join("/", path_prefix.strip("/"), STYLESHEET_FILE),
    )
    rendered = aggregator.render(config, now=build_time)
    result = SitemapBuildResult(
        site_url=resolved_site_url, rendered=rendered, entry_count=len(aggregator)
    )

    if writer is not None:
        index_path = posixpath.join("/", path_prefix.strip("/"), options.output.lstrip("/"))
        _write_outputs(writer, rendered, index_path, path_prefix, result)
    return result
