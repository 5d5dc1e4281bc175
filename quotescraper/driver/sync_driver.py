"""Synchronous driver implementation.

The driver wires the pipeline together for one page at a time:

    fetch (SyncRequestManager) -> parse (parse_html)
        -> extract (extract_records) -> export (CsvRecordWriter)

When max_pages is greater than one it follows the pager's "Next" link after
each page until the limit is reached or no further link exists.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from quotescraper.common.lxml_page_element import parse_html
from quotescraper.common.request_manager import SyncRequestManager
from quotescraper.data_types import FetchSettings, Record
from quotescraper.exporter import FIELDNAMES, CsvRecordWriter
from quotescraper.extractor import (
    QUOTE_RULE,
    ExtractionRule,
    extract_records,
    next_page_url,
)

logger = logging.getLogger(__name__)


def scrape_html(
    html: str | bytes, url: str = "", rule: ExtractionRule = QUOTE_RULE
) -> list[Record]:
    """Parse and extract records from HTML that is already in memory.

    Args:
        html: The page's HTML.
        url: The page's URL, for resolving links and error context.
        rule: Container and field selectors to apply.

    Returns:
        Extracted records in document order.
    """
    return list(extract_records(parse_html(html, url), rule))


class SyncDriver:
    """Synchronous driver for the fetch-and-extract pipeline.

    Example usage::

        driver = SyncDriver("https://quotes.toscrape.com/", "quotes.csv")
        count = driver.run()
    """

    def __init__(
        self,
        start_url: str,
        output_path: str | Path,
        settings: FetchSettings | None = None,
        request_manager: SyncRequestManager | None = None,
        rule: ExtractionRule = QUOTE_RULE,
        max_pages: int = 1,
        fieldnames: tuple[str, ...] = FIELDNAMES,
        on_record: Callable[[Record], None] | None = None,
        on_run_start: Callable[[str], None] | None = None,
        on_run_complete: Callable[[str, str, Exception | None], None]
        | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            start_url: URL of the first page.
            output_path: CSV file to write.
            settings: Fetch configuration, used when no request_manager is
                given.
            request_manager: SyncRequestManager for handling HTTP requests.
                A manager passed in is not closed by the driver.
            rule: Container and field selectors to apply to every page.
            max_pages: Maximum number of pages to visit by following the
                pager's "Next" link.
            fieldnames: Ordered CSV columns.
            on_record: Optional callback invoked for every record written.
            on_run_start: Optional callback invoked with start_url when the
                run starts.
            on_run_complete: Optional callback invoked with start_url, status
                ("completed" | "error") and the error (or None).
        """
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")

        self.start_url = start_url
        self.output_path = Path(output_path)
        self.rule = rule
        self.max_pages = max_pages
        self.fieldnames = fieldnames
        self.on_record = on_record
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete
        self.settings = settings
        self.request_manager = request_manager
        self.visited: list[str] = []

    def run(self) -> int:
        """Run the pipeline and return the number of records written.

        Each call starts again from start_url and replaces the output file.
        Without a request_manager, a fresh SyncRequestManager is opened for
        the run and closed when it ends.

        Raises:
            NetworkError: If a page could not be fetched.
            HTTPStatusError: In strict mode, for a 4xx/5xx page. No records
                are extracted from that page.
            DataError: If a required field is missing.
            OSError: If the output file cannot be written.
        """
        if self.on_run_start:
            self.on_run_start(self.start_url)

        self.visited = []
        owns_request_manager = self.request_manager is None
        request_manager = self.request_manager or SyncRequestManager(
            self.settings
        )

        status = "completed"
        error: Exception | None = None
        written = 0

        try:
            with CsvRecordWriter(self.output_path, self.fieldnames) as writer:
                url: str | None = self.start_url
                while url is not None and len(self.visited) < self.max_pages:
                    url = self._process_page(request_manager, url, writer)
                written = writer.count
        except Exception as e:
            status = "error"
            error = e
            raise
        finally:
            if owns_request_manager:
                request_manager.close()

            if self.on_run_complete:
                self.on_run_complete(self.start_url, status, error)

        return written

    def _process_page(
        self,
        request_manager: SyncRequestManager,
        url: str,
        writer: CsvRecordWriter,
    ) -> str | None:
        response = request_manager.fetch(url)
        self.visited.append(url)

        if not response.is_success:
            logger.warning(
                f"Skipping extraction for {url}: HTTP {response.status_code}"
            )
            return None

        page = parse_html(response.text, response.url)
        for record in extract_records(page, self.rule):
            writer.write(record)
            if self.on_record:
                self.on_record(record)

        return next_page_url(page)
