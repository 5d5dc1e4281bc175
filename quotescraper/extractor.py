"""Turn a parsed page into Records.

An ExtractionRule names a container selector and the field selectors run
inside each container. extract_records() walks the containers lazily in
document order and builds one Record per container.

Missing optional fields do not fail the record: the DataError raised by the
checked query is recovered here and the field becomes "" (or an empty tuple
for multi-valued fields).
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from quotescraper.common.exceptions import DataError
from quotescraper.common.page_element import PageElement
from quotescraper.data_types import Record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSelector:
    """How to read one Record field from a container element.

    Attributes:
        name: Record field name.
        selector: CSS selector relative to the container.
        multiple: Collect every match into a tuple instead of a single string.
        required: Raise DataError instead of substituting an empty value
            when the element is missing.
    """

    name: str
    selector: str
    multiple: bool = False
    required: bool = False


@dataclass(frozen=True)
class ExtractionRule:
    """A container selector plus the field selectors applied to each match."""

    container: str
    fields: tuple[FieldSelector, ...]
    description: str = "record blocks"


QUOTE_RULE = ExtractionRule(
    container="div.quote",
    fields=(
        FieldSelector("text", "span.text"),
        FieldSelector("author", "small.author"),
        FieldSelector("tags", "div.tags a.tag", multiple=True),
    ),
    description="quote blocks",
)

NEXT_PAGE_SELECTOR = "li.next a"


def _clean(text: str) -> str:
    return " ".join(text.split())


def _read_field(element: PageElement, field: FieldSelector) -> str | tuple[str, ...]:
    if field.multiple:
        matches = element.query_css(
            field.selector,
            field.name,
            min_count=1 if field.required else 0,
        )
        # One entry per matched element, even when its text is empty
        return tuple(_clean(m.text_content()) for m in matches)

    try:
        match = element.query_css(
            field.selector, field.name, min_count=1, max_count=1
        )[0]
    except DataError as e:
        if field.required:
            raise
        logger.debug(
            f"Missing '{field.name}' ({e.actual_count} matches for "
            f"'{field.selector}') on {e.request_url}; using empty value"
        )
        return ""
    return _clean(match.text_content())


def extract_records(
    page: PageElement, rule: ExtractionRule = QUOTE_RULE
) -> Iterator[Record]:
    """Lazily extract one Record per container matched by the rule.

    Args:
        page: Parsed page (or any element) to search.
        rule: Container and field selectors to apply.

    Yields:
        Records in document order. The generator is finite and cannot be
        restarted once consumed.

    Raises:
        DataError: If a required field is missing from a container.
    """
    containers = page.query_css(rule.container, rule.description, min_count=0)
    if not containers:
        logger.info(f"No {rule.description} found on {page.url or 'page'}")

    for container in containers:
        values = {field.name: _read_field(container, field) for field in rule.fields}
        yield Record(**values)


def next_page_url(page: PageElement) -> str | None:
    """Return the absolute URL of the pager's "Next" link, if any."""
    links = page.find_links(
        NEXT_PAGE_SELECTOR, "next page link", min_count=0, max_count=1
    )
    return links[0].url if links else None
