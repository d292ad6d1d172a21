"""Pydantic models for the per-site sitemap options.

The options surface keeps the camelCase names site owners already use in
their build configuration (`siteUrl`, `addUncaughtPages`, ...); the snake_case
field names work too. Callables (custom serializers, exclusion predicates)
can be passed directly from Python or, in a JSON options file, as
`"package.module:attribute"` import strings.
"""
from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..defaults import (
    DEFAULT_EXCLUDE,
    DEFAULT_SPLIT_QUERY_PAGE_SIZE,
    INDEX_OUTPUT,
    PAGES_BUCKET,
)


def import_string(dotted: str) -> Any:
    """Resolve `"package.module:attribute"` (or `package.module.attribute`)."""
    if ":" in dotted:
        module_name, _, attr = dotted.partition(":")
    else:
        module_name, _, attr = dotted.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"Invalid import string {dotted!r}; expected 'module:attribute'")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part)
    return target


class MappingRule(BaseModel):
    """How records of one source type feed a sitemap bucket."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sitemap: str = PAGES_BUCKET
    # Resource (file) name; defaults to the bucket name.
    name: Optional[str] = None
    path: Optional[str] = None
    prefix: Optional[str] = None
    serializer: Optional[Callable[[List[Any]], Any]] = None

    @field_validator("serializer", mode="before")
    @classmethod
    def resolve_serializer(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = import_string(v)
        if v is not None and not callable(v):
            raise ValueError("serializer must be callable")
        return v

    @property
    def resource_name(self) -> str:
        return self.name or self.sitemap


class AdditionalSitemap(BaseModel):
    """An externally generated sitemap listed in the index as-is."""

    name: Optional[str] = None
    url: str
    # Legacy key some configurations use in place of `name`.
    sitemap: Optional[str] = None


class SitemapOptions(BaseModel):
    """All options recognized by the sitemap build."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    site_url: Optional[str] = Field(default=None, alias="siteUrl")
    skip_default_query: bool = Field(default=False, alias="skipDefaultQuery")
    query: Optional[Union[str, Dict[str, str]]] = None
    split_query_page_size: int = Field(
        default=DEFAULT_SPLIT_QUERY_PAGE_SIZE, alias="splitQueryPageSize", gt=0
    )
    output: str = INDEX_OUTPUT
    mapping: Optional[Dict[str, MappingRule]] = None
    # Validated by `compile_exclusion_rules` so a bad rule surfaces as a
    # SitemapConfigurationError rather than a pydantic ValidationError.
    exclude: List[Any] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    create_link_in_head: bool = Field(default=True, alias="createLinkInHead")
    add_uncaught_pages: bool = Field(default=True, alias="addUncaughtPages")
    additional_sitemaps: List[AdditionalSitemap] = Field(
        default_factory=list, alias="additionalSitemaps"
    )

    @field_validator("site_url", mode="before")
    @classmethod
    def blank_site_url(cls, v: Any) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("query", mode="before")
    @classmethod
    def blank_query(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        if isinstance(v, dict) and not v:
            return None
        return v


def load_options(path: Union[str, Path]) -> SitemapOptions:
    """Load `SitemapOptions` from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Options file {path} must contain a JSON object")
    return SitemapOptions.model_validate(raw)


__all__ = [
    "AdditionalSitemap",
    "MappingRule",
    "SitemapOptions",
    "import_string",
    "load_options",
]
