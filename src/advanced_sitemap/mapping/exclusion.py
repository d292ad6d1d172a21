"""Exclusion rules deciding which records never reach a sitemap.

Rules come in three kinds:

    literal string      excluded if the rule (outer slashes stripped) is a
                        substring of the slug (outer slashes stripped)
    regular expression  excluded if the compiled pattern matches anywhere in
                        the slug
    predicate           excluded if the callable returns a truthy value for
                        the raw node

Rules are validated once by `compile_exclusion_rules` before any query runs,
so an invalid regular expression stops the build early. Predicate exceptions
are never caught: a broken predicate must fail the build instead of silently
including or dropping pages.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ..errors import SitemapConfigurationError
from ..models.options import import_string
from ..models.sitemap import SourceRecord

logger = logging.getLogger(__name__)

ExclusionRule = Union[str, "re.Pattern[str]", Callable[[Dict[str, Any]], Any]]

_OUTER_SLASHES = re.compile(r"^/|/$")

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

__all__ = [
    "ExclusionRule",
    "compile_exclusion_rules",
    "filter_edges",
    "is_excluded",
    "strip_outer_slashes",
]


def strip_outer_slashes(value: str) -> str:
    """Remove one leading and one trailing slash; internal slashes are kept."""
    return _OUTER_SLASHES.sub("", value)


def _compile_regex(pattern: str, flags: str = "") -> "re.Pattern[str]":
    compiled_flags = 0
    for flag in flags:
        try:
            compiled_flags |= _REGEX_FLAGS[flag]
        except KeyError as e:
            raise SitemapConfigurationError(
                f"Excluded route has an unsupported RegExp flag {flag!r}: {pattern}"
            ) from e
    try:
        return re.compile(pattern, compiled_flags)
    except re.error as e:
        raise SitemapConfigurationError(
            f"Excluded route is not a valid RegExp: {pattern} ({e})"
        ) from e


def _compile_rule(rule: Any) -> ExclusionRule:
    if isinstance(rule, str):
        return strip_outer_slashes(rule)
    if isinstance(rule, re.Pattern):
        return rule
    if isinstance(rule, dict):
        if "regex" in rule:
            return _compile_regex(str(rule["regex"]), str(rule.get("flags") or ""))
        if "predicate" in rule:
            target = rule["predicate"]
            if isinstance(target, str):
                try:
                    target = import_string(target)
                except (ImportError, AttributeError, ValueError) as e:
                    raise SitemapConfigurationError(
                        f"Exclusion predicate {rule['predicate']!r} could not be imported: {e}"
                    ) from e
            if not callable(target):
                raise SitemapConfigurationError(
                    f"Exclusion predicate {rule['predicate']!r} is not callable"
                )
            return target
    if callable(rule):
        return rule
    raise SitemapConfigurationError(f"Unsupported exclusion rule: {rule!r}")


def compile_exclusion_rules(rules: Optional[Iterable[Any]]) -> List[ExclusionRule]:
    """Validate and normalize raw exclusion rules.

    Accepts strings, `re.Pattern` objects, callables, and the JSON-friendly
    forms `{"regex": "...", "flags": "i"}` and `{"predicate": "module:attr"}`.

    Raises:
        SitemapConfigurationError: for invalid expressions or unsupported rules.
    """
    compiled = [_compile_rule(rule) for rule in (rules or [])]
    logger.debug("Compiled %d exclusion rule(s)", len(compiled))
    return compiled


def is_excluded(
    record: SourceRecord, slug: Optional[str], rules: List[ExclusionRule]
) -> bool:
    """Return True if any rule excludes the record.

    `rules` must come from `compile_exclusion_rules`. Records without a slug
    can only be excluded by predicates.
    """
    normalized = strip_outer_slashes(slug) if slug is not None else None
    for rule in rules:
        if isinstance(rule, str):
            if normalized is not None and rule in normalized:
                return True
        elif isinstance(rule, re.Pattern):
            if normalized is not None and rule.search(normalized):
                return True
        elif rule(record.fields):
            return True
    return False


def filter_edges(
    source_key: str, edges: List[Any], rules: List[ExclusionRule]
) -> List[Any]:
    """Drop edges whose node is excluded. Edges without a node are kept for the normalizer to skip."""
    if not rules or not edges:
        return edges
    kept: List[Any] = []
    for edge in edges:
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict):
            kept.append(edge)
            continue
        record = SourceRecord.from_node(source_key, node)
        if is_excluded(record, record.slug, rules):
            logger.debug("Excluded %s record %r", record.type_tag, record.slug)
            continue
        kept.append(edge)
    return kept
