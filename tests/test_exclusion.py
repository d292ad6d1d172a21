from __future__ import annotations

import re

import pytest

from advanced_sitemap.errors import SitemapConfigurationError
from advanced_sitemap.mapping.exclusion import (
    compile_exclusion_rules,
    filter_edges,
    is_excluded,
    strip_outer_slashes,
)
from advanced_sitemap.models.sitemap import SourceRecord


def _record(slug, **fields):
    return SourceRecord(type_tag="allGhostPost", fields={"slug": slug, **fields})


def flag_is_true(node):
    return node.get("flag") is True


def test_strip_outer_slashes_keeps_internal_segments():
    assert strip_outer_slashes("/blog/tagged/") == "blog/tagged"
    assert strip_outer_slashes("blog") == "blog"
    assert strip_outer_slashes("//double//") == "/double/"


def test_literal_rule_matches_substring_of_normalized_slug():
    rules = compile_exclusion_rules(["/404"])
    assert is_excluded(_record("/404/"), "/404/", rules)
    assert is_excluded(_record("/404.html"), "/404.html", rules)
    assert not is_excluded(_record("/about/"), "/about/", rules)


def test_literal_rule_with_internal_slashes():
    rules = compile_exclusion_rules(["/blog/tagged/"])
    assert is_excluded(_record("/blog/tagged/python/"), "/blog/tagged/python/", rules)
    assert not is_excluded(_record("/blog/python/"), "/blog/python/", rules)


def test_regex_rule_matches_normalized_slug():
    rules = compile_exclusion_rules([re.compile(r"^private")])
    # Leading slash is stripped before matching, so the anchor applies to "private/...".
    assert is_excluded(_record("/private/notes"), "/private/notes", rules)
    assert not is_excluded(_record("/public/private"), "/public/private", rules)


def test_regex_rule_from_json_form_with_flags():
    rules = compile_exclusion_rules([{"regex": "^DRAFT-", "flags": "i"}])
    assert is_excluded(_record("draft-hello"), "draft-hello", rules)


def test_invalid_regex_is_configuration_error():
    with pytest.raises(SitemapConfigurationError):
        compile_exclusion_rules([{"regex": "([unclosed"}])


def test_unsupported_rule_is_configuration_error():
    with pytest.raises(SitemapConfigurationError):
        compile_exclusion_rules([42])


def test_predicate_excludes_exactly_flagged_records():
    rules = compile_exclusion_rules(["/never-matches", flag_is_true, re.compile("zzz")])
    records = [
        _record("a", flag=True),
        _record("b", flag=False),
        _record("c"),
        _record("d", flag="true"),
    ]
    excluded = [r.fields["slug"] for r in records if is_excluded(r, r.slug, rules)]
    assert excluded == ["a"]


def test_predicate_import_string():
    rules = compile_exclusion_rules([{"predicate": "test_exclusion:flag_is_true"}])
    assert callable(rules[0])


def test_predicate_exception_propagates():
    def broken(node):
        raise KeyError("missing")

    rules = compile_exclusion_rules([broken])
    with pytest.raises(KeyError):
        is_excluded(_record("a"), "a", rules)


def test_record_without_slug_only_checked_by_predicates():
    rules = compile_exclusion_rules(["a", lambda node: node.get("hidden")])
    assert not is_excluded(SourceRecord(type_tag="x", fields={}), None, rules)
    assert is_excluded(SourceRecord(type_tag="x", fields={"hidden": True}), None, rules)


def test_filter_edges_uses_fields_slug_for_markdown():
    edges = [
        {"node": {"__typename": "MarkdownRemark", "fields": {"slug": "/drafts/one/"}}},
        {"node": {"__typename": "MarkdownRemark", "fields": {"slug": "/posts/two/"}}},
        {"node": None},
    ]
    kept = filter_edges("allMarkdownRemark", edges, compile_exclusion_rules(["drafts"]))
    assert len(kept) == 2
    assert kept[0]["node"]["fields"]["slug"] == "/posts/two/"
