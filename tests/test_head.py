from __future__ import annotations

from typer.testing import CliRunner

from advanced_sitemap.__main__ import app
from advanced_sitemap.config import get_settings
from advanced_sitemap.head import sitemap_href, sitemap_link_tag


def test_href_defaults_to_root_index():
    assert sitemap_href() == "/sitemap.xml"


def test_href_honours_prefix_and_custom_output():
    assert sitemap_href("/sitemap_index.xml", "/docs/") == "/docs/sitemap_index.xml"


def test_link_tag():
    assert sitemap_link_tag() == '<link rel="sitemap" type="application/xml" href="/sitemap.xml"/>'


def test_head_link_command(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("OPTIONS_FILE", raising=False)
    monkeypatch.delenv("PATH_PREFIX", raising=False)
    get_settings.cache_clear()
    try:
        result = CliRunner().invoke(app, ["head-link", "--path-prefix", "/blog"])
    finally:
        get_settings.cache_clear()
    assert result.exit_code == 0, result.output
    assert 'href="/blog/sitemap.xml"' in result.output
