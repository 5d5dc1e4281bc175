"""Request managers for fetching pages over HTTP.

This module provides SyncRequestManager and AsyncRequestManager classes that
encapsulate the HTTP client and request resolution logic.

The request manager is responsible for:
- Maintaining the HTTP client (httpx.Client or httpx.AsyncClient), which
  pools connections and keeps session cookies between requests
- Retrying connection-level failures with exponential backoff
- Optional strict status checking
- Converting HTTP responses to Response objects

The retry schedule is::

    delay_after_attempt_n = min(retry_base_delay * 2^(n - 1), max_backoff)

``FetchSettings.retries`` is the total number of attempts, so ``retries=3``
means one initial attempt and two retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from quotescraper.common.exceptions import (
    HTTPStatusError,
    NetworkError,
)
from quotescraper.data_types import FetchSettings, Response

logger = logging.getLogger(__name__)


def _client_options(
    settings: FetchSettings,
    transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None,
) -> dict[str, Any]:
    options: dict[str, Any] = {
        "headers": settings.request_headers(),
        "cookies": settings.cookies,
        "timeout": settings.timeout,
        "follow_redirects": settings.follow_redirects,
        "trust_env": settings.trust_env,
    }
    if settings.proxy:
        options["proxy"] = settings.proxy
    if transport is not None:
        options["transport"] = transport
    return options


def _describe(error: httpx.TransportError) -> str:
    return f"{type(error).__name__}: {error}" if str(error) else type(error).__name__


def _to_response(http_response: httpx.Response, strict_status: bool) -> Response:
    url = str(http_response.url)
    if strict_status and http_response.status_code >= 400:
        raise HTTPStatusError(status_code=http_response.status_code, url=url)

    return Response(
        status_code=http_response.status_code,
        headers=dict(http_response.headers),
        content=http_response.content,
        text=http_response.text,
        url=url,
    )


class SyncRequestManager:
    """Manages HTTP requests for the synchronous driver.

    This class encapsulates:

    - httpx.Client lifecycle
    - Retry of connection-level failures
    - Response transformation

    Example::

        with SyncRequestManager(FetchSettings(retries=3)) as manager:
            response = manager.fetch("https://quotes.toscrape.com/")
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            settings: Fetch configuration. Defaults to FetchSettings().
            transport: Optional httpx transport, mainly for tests
                (httpx.MockTransport). Ignored for proxied URLs.
        """
        self.settings = settings or FetchSettings()
        self._client = httpx.Client(**_client_options(self.settings, transport))

    def close(self) -> None:
        """Close the HTTP client and release pooled connections."""
        self._client.close()

    def __enter__(self) -> SyncRequestManager:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def fetch(self, url: str) -> Response:
        """Fetch a URL with GET and return the Response.

        Args:
            url: Absolute URL of the page.

        Returns:
            Response containing the HTTP response data.

        Raises:
            NetworkError: If every attempt failed at the connection level.
            HTTPStatusError: If strict_status is set and the server returned
                a 4xx/5xx status code.
        """
        attempts = self.settings.retries
        for attempt in range(1, attempts + 1):
            logger.debug(f"GET {url} (attempt {attempt}/{attempts})")
            try:
                http_response = self._client.get(url)
            except httpx.TransportError as e:
                reason = _describe(e)
                if attempt == attempts:
                    logger.error(
                        f"Giving up on {url} after {attempts} attempts: {reason}"
                    )
                    raise NetworkError(
                        url=url, attempts=attempts, reason=reason
                    ) from e
                delay = self.settings.backoff_delay(attempt)
                logger.warning(
                    f"Attempt {attempt} for {url} failed: {reason}. "
                    f"Retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                continue

            logger.info(f"GET {url} -> {http_response.status_code}")
            return _to_response(http_response, self.settings.strict_status)

        # range() is never empty since retries >= 1
        raise AssertionError("unreachable")


class AsyncRequestManager:
    """Manages HTTP requests for the asynchronous driver.

    This class encapsulates:

    - httpx.AsyncClient lifecycle
    - Retry of connection-level failures
    - Response transformation

    Example::

        async with AsyncRequestManager(FetchSettings()) as manager:
            response = await manager.fetch("https://quotes.toscrape.com/")
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            settings: Fetch configuration. Defaults to FetchSettings().
            transport: Optional async httpx transport, mainly for tests.
        """
        self.settings = settings or FetchSettings()
        self._client = httpx.AsyncClient(
            **_client_options(self.settings, transport)
        )

    async def close(self) -> None:
        """Close the HTTP client and release pooled connections."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncRequestManager:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def fetch(self, url: str) -> Response:
        """Fetch a URL with GET and return the Response.

        Raises:
            NetworkError: If every attempt failed at the connection level.
            HTTPStatusError: If strict_status is set and the server returned
                a 4xx/5xx status code.
        """
        attempts = self.settings.retries
        for attempt in range(1, attempts + 1):
            logger.debug(f"GET {url} (attempt {attempt}/{attempts})")
            try:
                http_response = await self._client.get(url)
            except httpx.TransportError as e:
                reason = _describe(e)
                if attempt == attempts:
                    logger.error(
                        f"Giving up on {url} after {attempts} attempts: {reason}"
                    )
                    raise NetworkError(
                        url=url, attempts=attempts, reason=reason
                    ) from e
                delay = self.settings.backoff_delay(attempt)
                logger.warning(
                    f"Attempt {attempt} for {url} failed: {reason}. "
                    f"Retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
                continue

            logger.info(f"GET {url} -> {http_response.status_code}")
            return _to_response(http_response, self.settings.strict_status)

        raise AssertionError("unreachable")
