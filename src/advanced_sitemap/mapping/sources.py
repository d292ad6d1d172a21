"""Resolution of the resource list shown in the sitemap index.

Several mapping rules may feed the same bucket, and a rule may publish its
bucket under a different resource name. External sitemaps are listed under an
`external-` prefixed name so they cannot shadow a generated resource.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from ..models.options import AdditionalSitemap, MappingRule
from ..models.sitemap import SitemapSource

__all__ = ["serialize_sources"]


def serialize_sources(
    mapping: Dict[str, MappingRule],
    additional_sitemaps: Optional[List[AdditionalSitemap]] = None,
) -> List[SitemapSource]:
    """Ordered, name-unique list of index resources (first occurrence wins)."""
    sources: List[SitemapSource] = [
        SitemapSource(name=rule.resource_name, sitemap=rule.sitemap)
        for rule in mapping.values()
    ]
    for index, extra in enumerate(additional_sitemaps or []):
        label = extra.name or extra.sitemap or f"pages-{index}"
        sources.append(SitemapSource(name=f"external-{label}", url=extra.url))

    seen: set[str] = set()
    unique: List[SitemapSource] = []
    for source in sources:
        if source.name in seen:
            continue
        seen.add(source.name)
        unique.append(source)
    return unique
