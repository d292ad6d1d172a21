from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from advanced_sitemap import __main__ as cli
from advanced_sitemap.config import get_settings


class FakeGraphQLClient:
    """Stands in for the HTTP client; answers the default query from memory."""

    instances: list = []
    fail = False

    def __init__(self, endpoint, timeout=30, **kwargs):
        self.endpoint = endpoint
        self.queries = []
        FakeGraphQLClient.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def __call__(self, query, variables=None):
        self.queries.append(query)
        if FakeGraphQLClient.fail:
            raise RuntimeError("endpoint unreachable")
        return {
            "data": {
                "allSitePage": {"edges": [{"node": {"url": "/about/"}}, {"node": {"url": "/404/"}}]},
                "site": {"siteMetadata": {"siteUrl": "https://meta.example.com"}},
            }
        }


@pytest.fixture(autouse=True)
def _isolated_cli(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in ("SITE_URL", "OPTIONS_FILE", "PATH_PREFIX", "PUBLIC_PATH", "QUERY_DELAY_SECONDS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(cli, "GraphQLClient", FakeGraphQLClient)
    FakeGraphQLClient.instances = []
    FakeGraphQLClient.fail = False
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_build_dry_run_renders_without_writing(tmp_path):
    options = tmp_path / "sitemap.json"
    options.write_text(json.dumps({"siteUrl": "https://example.com"}), encoding="utf-8")

    result = CliRunner().invoke(
        cli.app,
        [
            "build",
            "--options", str(options),
            "--endpoint", "http://graph.test/___graphql",
            "--public-dir", str(tmp_path / "public"),
            "--query-delay", "0",
            "--dry-run",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Generated 1 sitemap file(s) with 1 URL(s) for https://example.com" in result.output
    assert '<link rel="sitemap" type="application/xml" href="/sitemap.xml"/>' in result.output
    assert not (tmp_path / "public").exists()
    (client,) = FakeGraphQLClient.instances
    assert client.endpoint == "http://graph.test/___graphql"
    assert len(client.queries) == 1


def test_build_writes_files_below_public_dir(tmp_path):
    result = CliRunner().invoke(
        cli.app,
        ["build", "--public-dir", str(tmp_path / "public"), "--path-prefix", "/docs", "--query-delay", "0"],
    )

    assert result.exit_code == 0, result.output
    index = (tmp_path / "public" / "docs" / "sitemap.xml").read_text(encoding="utf-8")
    assert "https://meta.example.com/docs/sitemap-pages.xml" in index
    assert (tmp_path / "public" / "docs" / "sitemap-pages.xml").exists()


def test_build_query_failure_exits_non_zero(tmp_path):
    FakeGraphQLClient.fail = True
    result = CliRunner().invoke(
        cli.app,
        ["build", "--site-url", "https://example.com", "--query-delay", "0", "--dry-run"],
    )
    assert result.exit_code == 1
    assert "Something went wrong running default query" in result.output
