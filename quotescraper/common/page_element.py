"""PageElement protocol for read-only data extraction from parsed HTML.

The extractor is written against this protocol rather than against lxml
directly. The only implementation is LxmlPageElement, backed by static parsed
HTML.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Link:
    """Represents an HTML <a> element with its resolved URL and text.

    Link is a pure value object and performs no I/O.

    Attributes:
        url: Resolved absolute URL from the href attribute.
        text: Visible text content of the link.
        selector: The selector that found this link.
    """

    url: str
    text: str
    selector: str


class PageElement(Protocol):
    """Protocol for querying a parsed HTML tree.

    All query methods support count validation and raise DataError if the
    actual count doesn't match expectations.
    """

    @property
    def url(self) -> str:
        """Base URL the element was fetched from."""
        ...

    def query_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Query elements by CSS selector.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching PageElement instances.

        Raises:
            DataError: If count doesn't match expectations.
        """
        ...

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Query elements by XPath selector."""
        ...

    def text_content(self) -> str:
        """Extract the visible text content of the element and descendants."""
        ...

    def get_attribute(self, name: str) -> str | None:
        """Extract an attribute value, or None if it doesn't exist."""
        ...

    def tag_name(self) -> str:
        """Get the element's lowercase tag name."""
        ...

    def find_links(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Find links matching a selector.

        Raises:
            DataError: If count doesn't match expectations.
        """
        ...

    def links(self) -> list[Link]:
        """Discover all links in the element."""
        ...
