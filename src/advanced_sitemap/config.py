"""Runtime configuration management using Pydantic Settings.

This module defines the `Settings` class, which loads runtime parameters from
environment variables and a `.env` file: where the query endpoint lives, where
the public output directory is, how long to pause between sequential queries,
and the logging level. Per-site sitemap options (mapping, exclusions, ...) are
modelled separately in `advanced_sitemap.models.options` and usually come from
an options file referenced by `OPTIONS_FILE`.

The `get_settings` function provides a cached, singleton instance of the
configuration, ensuring consistent settings throughout the application.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

from .defaults import (
    DEFAULT_QUERY_DELAY_SECONDS,
    DEFAULT_SPLIT_QUERY_PAGE_SIZE,
    PUBLIC_PATH,
)


class Settings(BaseSettings):
    """Defines all runtime configuration parameters.

    Values are read from the environment or a `.env` file. Anything passed on
    the command line takes precedence; the CLI applies those overrides after
    loading.
    """

    model_config = _SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Site
    SITE_URL: Optional[str] = Field(
        default=None,
        description=(
            "Absolute base URL of the site (e.g. https://example.com). Overrides "
            "siteUrl from the options file and the site metadata returned by the "
            "default query."
        ),
    )
    PATH_PREFIX: str = Field(default="", description="Path prefix the site is served under")
    PUBLIC_PATH: str = Field(
        default=PUBLIC_PATH, description="Directory the sitemap files are written to"
    )
    OPTIONS_FILE: Optional[str] = Field(
        default=None, description="JSON file holding the sitemap options (mapping, exclude, ...)"
    )

    # Query endpoint
    QUERY_ENDPOINT: str = Field(
        default="http://localhost:8000/___graphql",
        description="GraphQL endpoint the page/content graph is queried from",
    )
    QUERY_TIMEOUT: int = Field(
        default=30, description="Timeout (seconds) for a single query request"
    )
    QUERY_DELAY_SECONDS: float = Field(
        default=DEFAULT_QUERY_DELAY_SECONDS,
        description=(
            "Pause between sequential queries to bound memory on large data sets "
            "(0 disables the pause)"
        ),
    )
    SPLIT_QUERY_PAGE_SIZE: Optional[int] = Field(
        default=None,
        description=(
            "Records per request for paginated queries. Overrides splitQueryPageSize "
            f"from the options file (which defaults to {DEFAULT_SPLIT_QUERY_PAGE_SIZE})."
        ),
    )

    # Logging & runtime behavior
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("SITE_URL", "OPTIONS_FILE", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        """Treat blank environment values as unset."""
        if v is None:
            return None
        if isinstance(v, str):
            trimmed = v.strip()
            return trimmed or None
        return v

    @field_validator("QUERY_DELAY_SECONDS")
    @classmethod
    def non_negative_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("QUERY_DELAY_SECONDS must be >= 0")
        return v

    @field_validator("SPLIT_QUERY_PAGE_SIZE")
    @classmethod
    def positive_page_size(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("SPLIT_QUERY_PAGE_SIZE must be a positive integer")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
