"""LxmlPageElement implementation wrapping CheckedHtmlElement.

This module provides the PageElement implementation used by the drivers and
the parse_html() entry point that turns fetched HTML into one.
"""

from __future__ import annotations

from urllib.parse import urljoin

from quotescraper.common.checked_html import (
    CheckedHtmlElement,
    parse_document,
)
from quotescraper.common.page_element import Link

XPATH_PREFIXES = ("/", "./", "../", "(")


def parse_html(text: str | bytes, url: str = "") -> LxmlPageElement:
    """Parse HTML text into a read-only LxmlPageElement.

    Args:
        text: The HTML document.
        url: The URL the document came from, used to resolve relative links
            and to give errors context.

    Returns:
        The root element of the parsed document.

    Raises:
        DataError: If the document is empty.
    """
    return LxmlPageElement(parse_document(text, url), url)


class LxmlPageElement:
    """Implementation of the PageElement protocol wrapping CheckedHtmlElement.

    Attributes:
        _element: The underlying CheckedHtmlElement.
        _url: The base URL for resolving relative URLs.
    """

    def __init__(self, element: CheckedHtmlElement, url: str = "") -> None:
        self._element = element
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by CSS selector.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching LxmlPageElement instances.

        Raises:
            DataError: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_css(
            selector, description, min_count, max_count
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[LxmlPageElement]:
        """Query elements by XPath selector.

        Raises:
            DataError: If count doesn't match expectations.
        """
        checked_elements = self._element.checked_xpath(
            selector, description, min_count, max_count
        )
        return [LxmlPageElement(elem, self._url) for elem in checked_elements]

    def text_content(self) -> str:
        return self._element.text_content()

    def get_attribute(self, name: str) -> str | None:
        return self._element.get(name)

    def tag_name(self) -> str:
        return self._element.tag.lower()

    def find_links(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Find links matching a selector.

        Args:
            selector: XPath or CSS selector to find <a> elements.
            description: Human-readable description of the links.
            min_count: Minimum number of links expected (default: 1).
            max_count: Maximum number of links expected (None = unlimited).

        Returns:
            List of Link value objects with resolved URLs and text.
            Anchors without an href are skipped.

        Raises:
            DataError: If count doesn't match expectations.
        """
        # ".next a" is CSS; only path-like prefixes are XPath
        if selector.startswith(XPATH_PREFIXES):
            link_elements = self.query_xpath(
                selector, description, min_count, max_count
            )
        else:
            link_elements = self.query_css(
                selector, description, min_count, max_count
            )

        links: list[Link] = []
        for i, elem in enumerate(link_elements):
            href = elem.get_attribute("href")
            if not href:
                continue

            url = urljoin(self._url, href)
            text = " ".join(elem.text_content().split())
            links.append(
                Link(url=url, text=text, selector=f"({selector})[{i + 1}]")
            )

        return links

    def links(self) -> list[Link]:
        return self.find_links(".//a[@href]", "all links", min_count=0)
