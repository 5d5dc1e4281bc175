"""Asynchronous driver implementation.

The AsyncDriver closely mirrors SyncDriver with three key differences:

1. It takes a list of page URLs up front instead of following pager links
2. Pages are fetched concurrently by num_workers workers sharing an
   asyncio.Queue
3. Records are written in page-completion order, so there is no ordering
   guarantee between pages (records within a page keep document order)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from quotescraper.common.lxml_page_element import parse_html
from quotescraper.common.request_manager import AsyncRequestManager
from quotescraper.data_types import FetchSettings, Record
from quotescraper.exporter import FIELDNAMES, CsvRecordWriter
from quotescraper.extractor import (
    QUOTE_RULE,
    ExtractionRule,
    extract_records,
)

logger = logging.getLogger(__name__)


class AsyncDriver:
    """Asynchronous driver fetching several pages concurrently.

    Example usage::

        driver = AsyncDriver(
            [f"https://quotes.toscrape.com/page/{n}/" for n in range(1, 4)],
            "quotes.csv",
            num_workers=3,
        )
        count = await driver.run()
    """

    def __init__(
        self,
        urls: Sequence[str],
        output_path: str | Path,
        settings: FetchSettings | None = None,
        request_manager: AsyncRequestManager | None = None,
        rule: ExtractionRule = QUOTE_RULE,
        num_workers: int = 4,
        fieldnames: tuple[str, ...] = FIELDNAMES,
        on_record: Callable[[Record], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            urls: Page URLs to fetch.
            output_path: CSV file to write.
            settings: Fetch configuration, used when no request_manager is
                given.
            request_manager: AsyncRequestManager for handling HTTP requests.
                A manager passed in is not closed by the driver.
            rule: Container and field selectors to apply to every page.
            num_workers: Number of concurrent workers.
            fieldnames: Ordered CSV columns.
            on_record: Optional async callback invoked for every record
                written.
        """
        if num_workers < 1:
            raise ValueError("num_workers must be at least 1")

        self.urls = list(urls)
        self.output_path = Path(output_path)
        self.rule = rule
        self.num_workers = num_workers
        self.fieldnames = fieldnames
        self.on_record = on_record
        self.settings = settings
        self.request_manager = request_manager
        self.visited: list[str] = []

    async def run(self) -> int:
        """Fetch every page and return the number of records written.

        Each call fetches the URL list again and replaces the output file.
        The first error raised by any worker cancels the remaining workers
        and propagates.
        """
        self.visited = []
        owns_request_manager = self.request_manager is None
        request_manager = self.request_manager or AsyncRequestManager(
            self.settings
        )

        queue: asyncio.Queue[str] = asyncio.Queue()
        for url in self.urls:
            queue.put_nowait(url)

        try:
            with CsvRecordWriter(self.output_path, self.fieldnames) as writer:
                workers = [
                    asyncio.create_task(
                        self._worker(i, request_manager, queue, writer)
                    )
                    for i in range(min(self.num_workers, len(self.urls)))
                ]
                try:
                    await asyncio.gather(*workers)
                except BaseException:
                    for worker in workers:
                        worker.cancel()
                    await asyncio.gather(*workers, return_exceptions=True)
                    raise
                return writer.count
        finally:
            if owns_request_manager:
                await request_manager.close()

    async def _worker(
        self,
        worker_id: int,
        request_manager: AsyncRequestManager,
        queue: asyncio.Queue[str],
        writer: CsvRecordWriter,
    ) -> None:
        while True:
            try:
                url = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            logger.debug(f"Worker {worker_id} fetching {url}")
            response = await request_manager.fetch(url)
            self.visited.append(url)

            if not response.is_success:
                logger.warning(
                    f"Skipping extraction for {url}: HTTP {response.status_code}"
                )
                continue

            page = parse_html(response.text, response.url)
            for record in extract_records(page, self.rule):
                writer.write(record)
                if self.on_record:
                    await self.on_record(record)
