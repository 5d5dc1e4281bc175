"""Shared fixtures for the quotescraper tests."""

import asyncio
import socket
import threading
import time
from collections.abc import Generator
from contextlib import closing

import pytest
from aiohttp import web

from quotescraper.data_types import FetchSettings
from tests.mock_server import (
    FIXTURE_QUOTES,
    create_app,
    generate_page_html,
)


@pytest.fixture
def fixture_html() -> str:
    """The fixed three-quote page.

    Returns:
        HTML string containing the three fixture quotes and no pager.
    """
    return generate_page_html(FIXTURE_QUOTES)


@pytest.fixture
def fast_settings() -> FetchSettings:
    """FetchSettings that never sleep between retries."""
    return FetchSettings(
        retries=3, retry_base_delay=0.0, timeout=5.0, trust_env=False
    )


# =============================================================================
# aiohttp test server fixtures
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        self._started.wait(timeout=5.0)

    def _run_server(self) -> None:
        """Run the server in an asyncio event loop."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner

            future = asyncio.run_coroutine_threadsafe(
                runner.cleanup(), self._loop
            )
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def quotes_server() -> Generator[AioHttpTestServer, None, None]:
    """Create and start an aiohttp test server running the mock quotes site.

    Yields:
        AioHttpTestServer instance with the mock site running.
    """
    app = create_app()
    port = find_free_port()
    server = AioHttpTestServer(app, port)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def server_url(quotes_server: AioHttpTestServer) -> str:
    """Get the base URL of the test server (no trailing slash)."""
    return quotes_server.url


@pytest.fixture
def unreachable_url() -> str:
    """A localhost URL on a port nothing listens on."""
    port = find_free_port()
    # Give the OS a moment to fully release the port-finding socket
    time.sleep(0.01)
    return f"http://127.0.0.1:{port}/"
