"""Main CLI entry point for advanced-sitemap.

This module provides a command-line interface using Typer to run a sitemap
build:
1.  Loading runtime settings and the sitemap options file.
2.  Querying the page/content graph over GraphQL (advanced_sitemap.query_client).
3.  Aggregating and rendering the sitemaps (advanced_sitemap.pipeline).
4.  Writing the documents below the public output directory.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

# Load .env file if present (before any config access)
env_file = find_dotenv(usecwd=True) or find_dotenv()
if env_file:
    load_dotenv(env_file)
    logging.debug("Loaded environment from %s", env_file)

from .config import get_settings
from .errors import SitemapError
from .head import sitemap_link_tag
from .models.options import SitemapOptions, load_options
from .pipeline import generate_sitemaps
from .query_client import GraphQLClient
from .writer import LocalFileWriter

app = typer.Typer(help="advanced-sitemap CLI")
logger = logging.getLogger(__name__)


def _load(options_file: Optional[str]) -> SitemapOptions:
    if not options_file:
        return SitemapOptions()
    try:
        return load_options(options_file)
    except (OSError, ValueError, ValidationError) as e:
        typer.echo(f"Could not load options from {options_file}: {e}", err=True)
        raise typer.Exit(code=2)


@app.callback()
def main() -> None:  # pragma: no cover - simple callback
    """advanced-sitemap CLI.

    Use a subcommand like 'build' to generate sitemaps.
    """
    pass


@app.command(help="Query the content graph and write the sitemap index and resource files.")
def build(
    options_file: Optional[str] = typer.Option(
        None, "--options", help="JSON options file (defaults to settings.OPTIONS_FILE)"
    ),
    endpoint: Optional[str] = typer.Option(
        None, help="GraphQL endpoint (defaults to settings.QUERY_ENDPOINT)"
    ),
    public_dir: Optional[str] = typer.Option(
        None, help="Output directory (defaults to settings.PUBLIC_PATH)"
    ),
    path_prefix: Optional[str] = typer.Option(
        None, help="Path prefix the site is served under (defaults to settings.PATH_PREFIX)"
    ),
    site_url: Optional[str] = typer.Option(
        None, help="Site base URL (overrides SITE_URL and siteUrl from the options file)"
    ),
    query_delay: Optional[float] = typer.Option(
        None, help="Seconds to pause between sequential queries (overrides QUERY_DELAY_SECONDS)"
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run/--no-dry-run",
        help="Render the sitemaps but do not write any file.",
    ),
) -> None:
    """Run one sitemap build."""
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    typer.echo("Generating sitemap")

    options = _load(options_file or settings.OPTIONS_FILE)
    effective_prefix = settings.PATH_PREFIX if path_prefix is None else path_prefix
    effective_delay = settings.QUERY_DELAY_SECONDS if query_delay is None else query_delay
    writer = None if dry_run else LocalFileWriter(public_dir or settings.PUBLIC_PATH)

    async def _run():
        async with GraphQLClient(
            endpoint or settings.QUERY_ENDPOINT, timeout=settings.QUERY_TIMEOUT
        ) as client:
            return await generate_sitemaps(
                client,
                options,
                writer=writer,
                path_prefix=effective_prefix,
                site_url=site_url or settings.SITE_URL,
                page_size=settings.SPLIT_QUERY_PAGE_SIZE,
                delay=effective_delay,
            )

    try:
        result = asyncio.run(_run())
    except SitemapError as e:
        logger.error("Sitemap generation failed: %s", e)
        typer.echo(f"Sitemap generation failed: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"Generated {len(result.rendered.physical_documents)} sitemap file(s) with "
        f"{result.entry_count} URL(s) for {result.site_url}. dry_run={dry_run}"
    )
    if result.failed:
        typer.echo(f"Failed to write: {', '.join(result.failed)}", err=True)
    if options.create_link_in_head:
        typer.echo(f"Head link: {sitemap_link_tag(options.output, effective_prefix)}")


@app.command("head-link", help="Print the <link rel=\"sitemap\"> tag for the document head.")
def head_link(
    options_file: Optional[str] = typer.Option(None, "--options", help="JSON options file"),
    path_prefix: Optional[str] = typer.Option(None, help="Path prefix the site is served under"),
) -> None:
    settings = get_settings()
    options = _load(options_file or settings.OPTIONS_FILE)
    prefix = settings.PATH_PREFIX if path_prefix is None else path_prefix
    typer.echo(sitemap_link_tag(options.output, prefix))


if __name__ == "__main__":  # pragma: no cover
    app()
