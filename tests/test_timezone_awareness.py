from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

from advanced_sitemap.mapping.normalizer import normalize
from advanced_sitemap.models.options import MappingRule
from advanced_sitemap.models.sitemap import SourceRecord

PACKAGE_DIR = Path(__file__).resolve().parent.parent / "src" / "advanced_sitemap"

# Build timestamps end up in every lastmod; they must be created aware.
NAIVE_CLOCK = re.compile(r"datetime\.(utcnow\(|now\(\s*\))")


def test_package_never_reads_a_naive_clock():
    offenders = [
        f"{path.relative_to(PACKAGE_DIR)}:{lineno}"
        for path in sorted(PACKAGE_DIR.rglob("*.py"))
        for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1)
        if NAIVE_CLOCK.search(line) and not line.lstrip().startswith("#")
    ]
    assert offenders == []


def test_normalizer_makes_naive_datetimes_aware():
    naive = datetime(2024, 7, 1, 8, 30)
    record = SourceRecord.from_node("allGhostPost", {"slug": "naive", "updated_at": naive})
    entry = normalize(record, MappingRule(sitemap="posts"), "https://example.com")
    assert entry.last_modified.utcoffset() == timedelta(0)
    assert entry.last_modified == datetime(2024, 7, 1, 8, 30, tzinfo=timezone.utc)
