"""Tests for SyncDriver.

Tests use a real aiohttp server to verify the whole pipeline:
fetch -> parse -> extract -> export.
"""

from pathlib import Path

import pytest

from quotescraper.common.exceptions import HTTPStatusError, NetworkError
from quotescraper.common.request_manager import SyncRequestManager
from quotescraper.data_types import Record
from quotescraper.driver.sync_driver import SyncDriver, scrape_html
from quotescraper.exporter import read_records
from tests.mock_server import FIXTURE_QUOTES, PAGES
from tests.utils import collect_results


class TestSyncDriverPipeline:
    """Tests for a single-page run."""

    def test_fixture_page_produces_three_records(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        """The fixture page shall yield exactly 3 complete records."""
        output = tmp_path / "quotes.csv"
        driver = SyncDriver(
            f"{server_url}/fixture", output, settings=fast_settings
        )

        count = driver.run()

        records = read_records(output)
        assert count == 3
        assert len(records) == 3
        for record, quote in zip(records, FIXTURE_QUOTES):
            assert record.text == quote.text
            assert record.author == quote.author
            assert len(record.tags) == len(quote.tags)

    def test_on_record_callback(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        callback, results = collect_results()
        driver = SyncDriver(
            f"{server_url}/fixture",
            tmp_path / "quotes.csv",
            settings=fast_settings,
            on_record=callback,
        )

        driver.run()

        assert len(results) == 3
        assert all(isinstance(r, Record) for r in results)

    def test_missing_author(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        output = tmp_path / "quotes.csv"
        SyncDriver(f"{server_url}/no-author", output, settings=fast_settings).run()

        records = read_records(output)
        assert [r.author for r in records] == ["", "Jane Austen"]

    def test_lenient_404_writes_header_only(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        output = tmp_path / "quotes.csv"
        count = SyncDriver(
            f"{server_url}/missing", output, settings=fast_settings
        ).run()

        assert count == 0
        assert output.read_text(encoding="utf-8").strip() == "text,author,tags"

    def test_max_pages_must_be_positive(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            SyncDriver("http://example.com/", tmp_path / "x.csv", max_pages=0)


class TestSyncDriverStrictMode:
    """Tests for strict status checking."""

    def test_strict_404_raises_before_extraction(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        """A 404 in strict mode shall raise with no records extracted."""
        settings = fast_settings.model_copy(update={"strict_status": True})
        callback, results = collect_results()
        driver = SyncDriver(
            f"{server_url}/missing",
            tmp_path / "quotes.csv",
            settings=settings,
            on_record=callback,
        )

        with pytest.raises(HTTPStatusError) as exc_info:
            driver.run()

        assert exc_info.value.status_code == 404
        assert results == []

    def test_strict_500_page_not_extracted(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        """The 500 page carries quotes, but none shall be extracted."""
        settings = fast_settings.model_copy(update={"strict_status": True})
        callback, results = collect_results()
        driver = SyncDriver(
            f"{server_url}/server-error",
            tmp_path / "quotes.csv",
            settings=settings,
            on_record=callback,
        )

        with pytest.raises(HTTPStatusError):
            driver.run()

        assert results == []


class TestSyncDriverPagination:
    """Tests for following pager links."""

    def test_follows_next_links(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        output = tmp_path / "quotes.csv"
        driver = SyncDriver(
            f"{server_url}/", output, settings=fast_settings, max_pages=10
        )

        count = driver.run()

        expected = [q.author for page in PAGES for q in page]
        assert count == len(expected)
        assert [r.author for r in read_records(output)] == expected
        assert driver.visited == [
            f"{server_url}/",
            f"{server_url}/page/2/",
            f"{server_url}/page/3/",
        ]

    def test_stops_at_max_pages(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        driver = SyncDriver(
            f"{server_url}/page/1/",
            tmp_path / "quotes.csv",
            settings=fast_settings,
            max_pages=2,
        )

        count = driver.run()

        assert count == len(PAGES[0]) + len(PAGES[1])
        assert len(driver.visited) == 2

    def test_single_page_by_default(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        driver = SyncDriver(
            f"{server_url}/", tmp_path / "quotes.csv", settings=fast_settings
        )

        assert driver.run() == len(PAGES[0])
        assert driver.visited == [f"{server_url}/"]


class TestSyncDriverLifecycle:
    """Tests for lifecycle hooks and resource handling."""

    def test_hooks_on_success(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        events: list[tuple] = []
        url = f"{server_url}/fixture"
        driver = SyncDriver(
            url,
            tmp_path / "quotes.csv",
            settings=fast_settings,
            on_run_start=lambda u: events.append(("start", u)),
            on_run_complete=lambda u, status, err: events.append(
                ("complete", u, status, err)
            ),
        )

        driver.run()

        assert events == [("start", url), ("complete", url, "completed", None)]

    def test_network_error_after_retries(
        self, unreachable_url: str, tmp_path: Path, fast_settings
    ) -> None:
        events: list[tuple] = []
        driver = SyncDriver(
            unreachable_url,
            tmp_path / "quotes.csv",
            settings=fast_settings,
            on_run_complete=lambda u, status, err: events.append((status, err)),
        )

        with pytest.raises(NetworkError) as exc_info:
            driver.run()

        assert exc_info.value.attempts == 3
        assert events[0][0] == "error"
        assert events[0][1] is exc_info.value

    def test_run_twice(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        """A second run shall fetch again and rewrite the same records."""
        output = tmp_path / "quotes.csv"
        driver = SyncDriver(
            f"{server_url}/", output, settings=fast_settings, max_pages=2
        )

        first = driver.run()
        second = driver.run()

        assert first == second == len(PAGES[0]) + len(PAGES[1])
        assert len(read_records(output)) == second
        assert driver.visited == [f"{server_url}/", f"{server_url}/page/2/"]

    def test_failed_run_keeps_previous_output(
        self,
        server_url: str,
        unreachable_url: str,
        tmp_path: Path,
        fast_settings,
    ) -> None:
        output = tmp_path / "quotes.csv"
        SyncDriver(f"{server_url}/fixture", output, settings=fast_settings).run()

        with pytest.raises(NetworkError):
            SyncDriver(unreachable_url, output, settings=fast_settings).run()

        assert len(read_records(output)) == 3
        assert list(tmp_path.iterdir()) == [output]

    def test_strict_error_creates_no_file(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        output = tmp_path / "quotes.csv"
        settings = fast_settings.model_copy(update={"strict_status": True})

        with pytest.raises(HTTPStatusError):
            SyncDriver(f"{server_url}/missing", output, settings=settings).run()

        assert not output.exists()

    def test_unwritable_output_raises_oserror(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        driver = SyncDriver(
            f"{server_url}/fixture",
            tmp_path / "no-such-dir" / "quotes.csv",
            settings=fast_settings,
        )

        with pytest.raises(OSError):
            driver.run()

    def test_borrowed_request_manager_left_open(
        self, server_url: str, tmp_path: Path, fast_settings
    ) -> None:
        with SyncRequestManager(fast_settings) as manager:
            SyncDriver(
                f"{server_url}/fixture",
                tmp_path / "a.csv",
                request_manager=manager,
            ).run()
            # Still usable after the driver finished
            response = manager.fetch(f"{server_url}/fixture")

        assert response.status_code == 200


class TestScrapeHtml:
    """Tests for the offline helper."""

    def test_scrape_html(self, fixture_html: str) -> None:
        records = scrape_html(fixture_html, "http://example.com/")

        assert [r.author for r in records] == [q.author for q in FIXTURE_QUOTES]
