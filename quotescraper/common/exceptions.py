"""Exception types for fetch and extraction errors.

Two families of errors exist:

- Assumption violations (``ScraperAssumptionException`` and ``DataError``)
  mean the page does not look the way the extractor expects.
- Transient errors (``TransientException`` and ``NetworkError``) mean the
  request itself failed and retrying might succeed.

``HTTPStatusError`` sits outside both families: it is only raised when the
caller opts into strict status checking.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    The extractor assumes a page structure. When that assumption is violated
    it raises a subclass of this exception carrying enough context to
    diagnose which selector failed on which page.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class DataError(ScraperAssumptionException):
    """Raised when an expected structural element is absent.

    Selectors are run with an expected result count. When the actual count
    falls outside that range this exception is raised. The extractor
    recovers it locally for optional fields by substituting an empty value.

    Attributes:
        selector: The CSS or XPath selector that was used.
        selector_type: Type of selector ("css" or "xpath").
        description: What the selector was meant to find.
        expected_min: Minimum number of results expected.
        expected_max: Maximum number of results expected (None = unlimited).
        actual_count: Number of results actually found.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


class TransientException(Exception):
    """Base class for transient errors that might resolve on retry.

    Transient exceptions represent temporary failures like refused
    connections, DNS failures or timeouts. The request manager is
    responsible for retrying them.
    """

    pass


class NetworkError(TransientException):
    """Raised when a request fails at the connection level on every attempt.

    Attributes:
        url: The URL that could not be fetched.
        attempts: How many attempts were made before giving up.
        reason: Description of the last underlying failure.
        message: Human-readable error message.
    """

    def __init__(self, url: str, attempts: int, reason: str) -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        noun = "attempt" if attempts == 1 else "attempts"
        self.message = (
            f"Request to {url} failed after {attempts} {noun}: {reason}"
        )
        super().__init__(self.message)


class HTTPStatusError(Exception):
    """Raised in strict mode when the server answers with a 4xx/5xx status.

    Attributes:
        status_code: The status code received.
        url: The URL of the request.
        message: Human-readable error message.
    """

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        kind = "Client error" if status_code < 500 else "Server error"
        self.message = f"{kind} HTTP {status_code} from {url}"
        super().__init__(self.message)
