"""quotescraper CLI: fetch quote pages and write them to CSV.

Usage:
    quotescraper                                    # default site -> quotes.csv
    quotescraper https://quotes.toscrape.com/ out.csv
    quotescraper --pages 3                          # follow "Next" links
    quotescraper --async --pages 5 --workers 5      # fetch /page/1..5/ concurrently
    quotescraper --header "Accept-Language: en" --cookie session=abc
    quotescraper --from-file page.html out.csv      # parse a saved page

Every option can also be given as an environment variable with the
``QUOTESCRAPER_`` prefix, e.g. ``QUOTESCRAPER_PROXY=http://localhost:8030``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import urljoin

import click
from pydantic import ValidationError

from quotescraper.common.exceptions import (
    DataError,
    HTTPStatusError,
    NetworkError,
)
from quotescraper.data_types import DEFAULT_URL, FetchSettings

ENVVAR_PREFIX = "QUOTESCRAPER"


def _parse_pairs(
    values: tuple[str, ...], separator: str, option: str
) -> dict[str, str]:
    """Parse repeated ``NAME<sep>VALUE`` option values into a dict.

    Raises:
        click.BadParameter: If a value has no separator or an empty name.
    """
    pairs: dict[str, str] = {}
    for value in values:
        name, sep, rest = value.partition(separator)
        if not sep or not name.strip():
            raise click.BadParameter(
                f"Invalid value '{value}'. "
                f"Expected format: 'NAME{separator}VALUE'",
                param_hint=option,
            )
        pairs[name.strip()] = rest.strip()
    return pairs


def page_urls(base_url: str, pages: int) -> list[str]:
    """Build the ``page/N/`` URLs fetched by the async driver."""
    base = base_url if base_url.endswith("/") else base_url + "/"
    return [urljoin(base, f"page/{n}/") for n in range(1, pages + 1)]


@click.command()
@click.version_option(package_name="quotescraper")
@click.argument("url", default=DEFAULT_URL)
@click.argument("output", default="quotes.csv", type=click.Path(dir_okay=False))
@click.option(
    "--header",
    "headers",
    multiple=True,
    metavar="NAME:VALUE",
    help="Extra request header. Repeatable.",
)
@click.option(
    "--cookie",
    "cookies",
    multiple=True,
    metavar="NAME=VALUE",
    help="Cookie sent with every request. Repeatable.",
)
@click.option("--proxy", default=None, help="Proxy URL for all requests.")
@click.option(
    "--timeout",
    type=float,
    default=10.0,
    show_default=True,
    help="Request timeout in seconds.",
)
@click.option(
    "--retries",
    type=int,
    default=3,
    show_default=True,
    help="Total attempts for a request that fails to connect.",
)
@click.option(
    "--strict/--no-strict",
    default=False,
    show_default=True,
    help="Fail on 4xx/5xx responses instead of skipping the page.",
)
@click.option(
    "--trust-env/--no-trust-env",
    default=True,
    show_default=True,
    help="Honour HTTP_PROXY and related environment variables.",
)
@click.option(
    "--pages",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Maximum number of pages to scrape.",
)
@click.option(
    "--async",
    "use_async",
    is_flag=True,
    help="Fetch URL/page/1/ .. URL/page/N/ concurrently.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=4,
    show_default=True,
    help="Number of concurrent workers (--async).",
)
@click.option(
    "--from-file",
    "from_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Parse a saved HTML file instead of fetching URL.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def cli(
    url: str,
    output: str,
    headers: tuple[str, ...],
    cookies: tuple[str, ...],
    proxy: str | None,
    timeout: float,
    retries: int,
    strict: bool,
    trust_env: bool,
    pages: int,
    use_async: bool,
    workers: int,
    from_file: Path | None,
    verbose: bool,
) -> None:
    """Scrape quotes from URL and write them to OUTPUT as CSV.

    \b
    Examples:
        quotescraper
        quotescraper https://quotes.toscrape.com/ quotes.csv --pages 10
        quotescraper --async --pages 10 --workers 5
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = FetchSettings(
            headers=_parse_pairs(headers, ":", "--header"),
            cookies=_parse_pairs(cookies, "=", "--cookie"),
            proxy=proxy,
            timeout=timeout,
            retries=retries,
            strict_status=strict,
            trust_env=trust_env,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    try:
        if from_file is not None:
            count = _run_file(from_file, url, Path(output))
        elif use_async:
            count = _run_async(url, Path(output), settings, pages, workers)
        else:
            count = _run_sync(url, Path(output), settings, pages)
    except (NetworkError, HTTPStatusError, DataError) as e:
        raise click.ClickException(str(e)) from e
    except OSError as e:
        raise click.ClickException(
            f"Could not write {output}: {e.strerror or e}"
        ) from e

    click.echo(f"Wrote {count} records to {output}")


# ------------------------------------------------------------------
# Runners
# ------------------------------------------------------------------


def _run_file(path: Path, url: str, output: Path) -> int:
    from quotescraper.driver.sync_driver import scrape_html
    from quotescraper.exporter import export_records

    records = scrape_html(path.read_bytes(), url)
    return export_records(records, output)


def _run_sync(
    url: str, output: Path, settings: FetchSettings, pages: int
) -> int:
    from quotescraper.driver.sync_driver import SyncDriver

    driver = SyncDriver(url, output, settings=settings, max_pages=pages)
    return driver.run()


def _run_async(
    url: str, output: Path, settings: FetchSettings, pages: int, workers: int
) -> int:
    from quotescraper.driver.async_driver import AsyncDriver

    async def _go() -> int:
        driver = AsyncDriver(
            page_urls(url, pages),
            output,
            settings=settings,
            num_workers=workers,
        )
        return await driver.run()

    return asyncio.run(_go())


def main() -> None:
    """Entry point for the ``quotescraper`` console script."""
    cli(auto_envvar_prefix=ENVVAR_PREFIX)
