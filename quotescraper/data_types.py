"""Core data types for the fetch-and-extract pipeline.

- Record: one extracted quote, validated by Pydantic and immutable once built.
- Response: HTTP response handed from the request manager to the parser.
- FetchSettings: configuration for the request managers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from quotescraper import __version__

DEFAULT_URL = "https://quotes.toscrape.com/"
DEFAULT_USER_AGENT = f"quotescraper/{__version__}"
TAG_SEPARATOR = ";"


class Record(BaseModel):
    """A single quote extracted from a page.

    Attributes:
        text: The quote text.
        author: The quote's author, or "" if the page omitted it.
        tags: Tag names in page order.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Quote text")
    author: str = Field("", description="Author name")
    tags: tuple[str, ...] = Field(default=(), description="Ordered tag names")

    def to_row(self, tag_separator: str = TAG_SEPARATOR) -> dict[str, str]:
        """Flatten the record into a CSV row.

        Args:
            tag_separator: String placed between tags in the tags column.

        Returns:
            Mapping with "text", "author" and "tags" keys.
        """
        return {
            "text": self.text,
            "author": self.author,
            "tags": tag_separator.join(self.tags),
        }

    @classmethod
    def from_row(
        cls, row: Mapping[str, str], tag_separator: str = TAG_SEPARATOR
    ) -> Record:
        """Rebuild a record from a row written by to_row()."""
        tags = row.get("tags") or ""
        return cls(
            text=row.get("text") or "",
            author=row.get("author") or "",
            tags=tuple(tags.split(tag_separator)) if tags else (),
        )


@dataclass
class Response:
    """HTTP response from fetching a page.

    Modeled after httpx.Response to provide a familiar interface.

    Attributes:
        status_code: HTTP status code (200, 404, etc.).
        headers: Response headers.
        content: Raw response bytes.
        text: Decoded response text.
        url: Final URL after any redirects.
    """

    status_code: int
    headers: dict[str, str]
    content: bytes
    text: str
    url: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class FetchSettings(BaseModel):
    """Configuration for the request managers.

    Attributes:
        headers: Extra request headers. These override the default
            User-Agent when they set one.
        cookies: Cookies sent with every request of the session.
        proxy: Optional proxy URL, e.g. "http://localhost:8030".
        timeout: Request timeout in seconds.
        retries: Total number of attempts for a request that fails at the
            connection level. 1 means no retry.
        retry_base_delay: Delay before the second attempt, doubled for each
            following attempt.
        max_backoff: Upper bound for a single delay between attempts.
        strict_status: Raise HTTPStatusError for 4xx/5xx responses.
        follow_redirects: Follow 3xx responses.
        trust_env: Read proxy and certificate settings from environment
            variables (HTTP_PROXY, NO_PROXY, SSL_CERT_FILE, ...).
    """

    headers: dict[str, str] = Field(default_factory=dict)
    cookies: dict[str, str] = Field(default_factory=dict)
    proxy: str | None = None
    timeout: float = Field(10.0, gt=0)
    retries: int = Field(3, ge=1)
    retry_base_delay: float = Field(0.5, ge=0)
    max_backoff: float = Field(8.0, ge=0)
    strict_status: bool = False
    follow_redirects: bool = True
    trust_env: bool = True

    def request_headers(self) -> dict[str, str]:
        """Default headers merged with the configured ones."""
        merged = {"User-Agent": DEFAULT_USER_AGENT}
        for name, value in self.headers.items():
            # Header names are case-insensitive
            for existing in list(merged):
                if existing.lower() == name.lower():
                    del merged[existing]
            merged[name] = value
        return merged

    def backoff_delay(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return min(self.retry_base_delay * (2 ** (attempt - 1)), self.max_backoff)

