"""Checked HTML element wrapper for safe CSS/XPath querying.

This module provides CheckedHtmlElement, a wrapper around
lxml.html.HtmlElement that validates selector results against expected
counts, and parse_document() which builds one from raw HTML text.
"""

from __future__ import annotations

from lxml import etree, html
from lxml.html import HtmlElement

from quotescraper.common.exceptions import DataError


def parse_document(text: str | bytes, request_url: str = "") -> CheckedHtmlElement:
    """Parse an HTML document into a CheckedHtmlElement.

    Args:
        text: Raw HTML, as text or bytes.
        request_url: Optional URL for error context.

    Returns:
        The checked root element of the document.

    Raises:
        DataError: If the document is empty and has no root element.
    """
    if not text or not text.strip():
        raise DataError(
            selector="/html",
            selector_type="xpath",
            description="document root",
            expected_min=1,
            expected_max=1,
            actual_count=0,
            request_url=request_url,
        )
    try:
        root = html.document_fromstring(text)
    except etree.ParserError as e:
        raise DataError(
            selector="/html",
            selector_type="xpath",
            description="document root",
            expected_min=1,
            expected_max=1,
            actual_count=0,
            request_url=request_url,
        ) from e
    return CheckedHtmlElement(root, request_url)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    checked_xpath() and checked_css() validate the number of results against
    expected min/max counts and raise DataError with clear context when the
    page structure does not match.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        self._element = element
        self._request_url = request_url

    @property
    def request_url(self) -> str:
        return self._request_url

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute XPath query with count validation.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements. Non-element results
            (strings, numbers) are ignored.

        Raises:
            DataError: If the expression is invalid or the count doesn't
                match expectations.
        """
        try:
            results = self._element.xpath(xpath)
        except etree.XPathError as e:
            raise DataError(
                selector=xpath,
                selector_type="xpath",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        if not isinstance(results, list):
            results = []

        wrapped: list[CheckedHtmlElement] = [
            CheckedHtmlElement(r, self._request_url)
            for r in results
            if isinstance(r, HtmlElement)
        ]
        self._check_count(
            xpath, "xpath", description, min_count, max_count, len(wrapped)
        )
        return wrapped

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching CheckedHtmlElements, each supporting nested
            checked queries.

        Raises:
            DataError: If count doesn't match expectations.

        Example::

            tree = parse_document(page_html)
            quotes = tree.checked_css("div.quote", "quote blocks")
            for quote in quotes:
                text = quote.checked_css("span.text", "quote text", max_count=1)
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            # cssselect raises SelectorSyntaxError / ExpressionError
            raise DataError(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        self._check_count(
            selector, "css", description, min_count, max_count, len(results)
        )
        return [
            CheckedHtmlElement(result, self._request_url) for result in results
        ]

    def _check_count(
        self,
        selector: str,
        selector_type: str,
        description: str,
        min_count: int,
        max_count: int | None,
        actual_count: int,
    ) -> None:
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise DataError(
                selector=selector,
                selector_type=selector_type,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element."""
        return getattr(self._element, name)
