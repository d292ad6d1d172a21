"""Record-level transformation logic.

All functions within this package are pure (no network I/O or file writes)
and deterministic.

Modules:
    exclusion: Literal, regular-expression and predicate exclusion rules
    normalizer: Source record to canonical sitemap entry conversion
    sources: Index resource list (mapped buckets plus external sitemaps)
    time_utils: Timestamp parsing and lastmod formatting in UTC

Design Invariants:
    - No network calls or file writes permitted
    - Site URL passed explicitly; no module level state
    - Timezone-aware UTC timestamps only
"""
from __future__ import annotations

from . import time_utils as time_utils  # noqa: F401

__all__ = ["time_utils"]
