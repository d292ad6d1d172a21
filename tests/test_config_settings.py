from __future__ import annotations

import pytest
from pydantic import ValidationError

from advanced_sitemap.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # No stray .env from the working tree, no leaked variables.
    monkeypatch.chdir(tmp_path)
    for key in (
        "SITE_URL",
        "PATH_PREFIX",
        "PUBLIC_PATH",
        "OPTIONS_FILE",
        "QUERY_ENDPOINT",
        "QUERY_TIMEOUT",
        "QUERY_DELAY_SECONDS",
        "SPLIT_QUERY_PAGE_SIZE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = Settings()
    assert s.SITE_URL is None
    assert s.PATH_PREFIX == ""
    assert s.PUBLIC_PATH == "public"
    assert s.QUERY_ENDPOINT == "http://localhost:8000/___graphql"
    assert s.QUERY_DELAY_SECONDS == 1.0
    assert s.SPLIT_QUERY_PAGE_SIZE is None
    assert s.LOG_LEVEL == "INFO"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SITE_URL", "https://example.com")
    monkeypatch.setenv("PATH_PREFIX", "/blog")
    monkeypatch.setenv("QUERY_DELAY_SECONDS", "0")
    monkeypatch.setenv("SPLIT_QUERY_PAGE_SIZE", "250")
    s = get_settings()
    assert s.SITE_URL == "https://example.com"
    assert s.PATH_PREFIX == "/blog"
    assert s.QUERY_DELAY_SECONDS == 0
    assert s.SPLIT_QUERY_PAGE_SIZE == 250


def test_blank_site_url_is_unset(monkeypatch):
    monkeypatch.setenv("SITE_URL", "   ")
    monkeypatch.setenv("OPTIONS_FILE", "")
    s = Settings()
    assert s.SITE_URL is None
    assert s.OPTIONS_FILE is None


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("SITE_URL=https://dotenv.example.com\n", encoding="utf-8")
    assert Settings().SITE_URL == "https://dotenv.example.com"


@pytest.mark.parametrize(
    "key, value",
    [("QUERY_DELAY_SECONDS", "-1"), ("SPLIT_QUERY_PAGE_SIZE", "0")],
)
def test_invalid_values_rejected(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ValidationError):
        Settings()
