"""CSV export of extracted Records.

The output is UTF-8, comma-delimited, with a header row (``text,author,tags``
by default) followed by one row per record. Tags are joined into a single
column with TAG_SEPARATOR.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from types import TracebackType

from quotescraper.data_types import TAG_SEPARATOR, Record

logger = logging.getLogger(__name__)

FIELDNAMES: tuple[str, ...] = ("text", "author", "tags")


class CsvRecordWriter:
    """Incremental CSV writer for Records.

    Rows go to a temporary ``.<name>.part`` file beside the target, which
    replaces the target only when the block finishes normally. If the block
    raises, the partial file is removed and an existing target is left
    untouched. Opening an unwritable path raises OSError.

    Example::

        with CsvRecordWriter("quotes.csv") as writer:
            for page in pages:
                writer.write_all(extract_records(page))
    """

    def __init__(
        self,
        path: str | Path,
        fieldnames: Sequence[str] = FIELDNAMES,
        tag_separator: str = TAG_SEPARATOR,
    ) -> None:
        self.path = Path(path)
        self.partial_path = self.path.with_name(f".{self.path.name}.part")
        self.fieldnames = list(fieldnames)
        self.tag_separator = tag_separator
        self.count = 0
        self._file = None
        self._writer: csv.DictWriter | None = None

    def __enter__(self) -> CsvRecordWriter:
        self.count = 0
        self._file = self.partial_path.open("w", encoding="utf-8", newline="")
        self._writer = csv.DictWriter(
            self._file, fieldnames=self.fieldnames, extrasaction="ignore"
        )
        self._writer.writeheader()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._writer = None

        if exc is not None:
            self.partial_path.unlink(missing_ok=True)
            logger.warning(
                f"Discarded {self.count} records for {self.path} "
                f"after {exc_type.__name__}"
            )
            return

        self.partial_path.replace(self.path)
        logger.info(f"Wrote {self.count} records to {self.path}")

    def write(self, record: Record) -> None:
        if self._writer is None:
            raise RuntimeError("CsvRecordWriter used outside a with block")
        self._writer.writerow(record.to_row(self.tag_separator))
        self.count += 1

    def write_all(self, records: Iterable[Record]) -> int:
        """Write every record from an iterable; returns how many were written."""
        written = 0
        for record in records:
            self.write(record)
            written += 1
        return written


def export_records(
    records: Iterable[Record],
    path: str | Path,
    fieldnames: Sequence[str] = FIELDNAMES,
    tag_separator: str = TAG_SEPARATOR,
) -> int:
    """Write records to a CSV file.

    Args:
        records: Records to write, consumed once.
        path: Target file path. Parent directories must exist.
        fieldnames: Ordered column names for the header row.
        tag_separator: String placed between tags in the tags column.

    Returns:
        Number of rows written (excluding the header).

    Raises:
        OSError: If the path cannot be opened for writing.
    """
    with CsvRecordWriter(path, fieldnames, tag_separator) as writer:
        return writer.write_all(records)


def read_records(
    path: str | Path, tag_separator: str = TAG_SEPARATOR
) -> list[Record]:
    """Read a CSV file written by export_records() back into Records."""
    with Path(path).open(encoding="utf-8", newline="") as f:
        return [Record.from_row(row, tag_separator) for row in csv.DictReader(f)]
