"""
CSV Row Reader

Streams rows of string cells out of a delimited text file. Supports header
extraction, column selection by index or header name, and both batch and
push-style (per-row callback) consumption.
"""

import csv
import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from csv_comparator.comparison.errors import ConfigurationError
from csv_comparator.comparison.models import Row
from csv_comparator.comparison.options import ParserSettings

logger = logging.getLogger(__name__)

RowProcessor = Callable[[Row], None]


class CsvRowReader:
    """
    Reads CSV files according to ParserSettings.

    When header extraction is enabled the first non-empty record is treated
    as the header and is not returned as data.
    """

    def __init__(self, settings: Optional[ParserSettings] = None):
        self.settings = settings or ParserSettings()

    def iter_rows(self, path: Union[str, Path], encoding: str) -> Iterator[Row]:
        """
        Lazily yield data rows from a file.

        Args:
            path: CSV file
            encoding: Character encoding to decode the file with

        Yields:
            Rows as tuples of strings

        Raises:
            csv.Error: If the file is malformed and strict parsing is enabled
            ConfigurationError: If a selected column name is not in the header
        """
        settings = self.settings

        with open(path, "r", encoding=encoding, newline="") as f:
            reader = csv.reader(
                f,
                delimiter=settings.delimiter,
                quotechar=settings.quote_char,
                escapechar=settings.escape_char,
                strict=settings.strict,
            )

            selection: Optional[List[int]] = None
            first = True

            for record in reader:
                if settings.skip_empty_lines and not record:
                    continue

                if settings.strip_whitespace:
                    record = [cell.strip() for cell in record]

                if first:
                    first = False
                    if settings.selected_columns is not None:
                        selection = self._resolve_selection(settings.selected_columns, record, path)
                    if settings.header_extraction_enabled:
                        continue

                yield self._select(record, selection)

    def read_all(self, path: Union[str, Path], encoding: str) -> List[Row]:
        """
        Read every data row of a file into memory.

        Args:
            path: CSV file
            encoding: Character encoding

        Returns:
            List of rows in file order
        """
        rows = list(self.iter_rows(path, encoding))
        logger.debug(f"Read {len(rows)} rows from {path}")
        return rows

    def parse(
        self,
        path: Union[str, Path],
        encoding: str,
        row_processor: RowProcessor
    ) -> int:
        """
        Push every data row of a file to a callback, one at a time.

        Args:
            path: CSV file
            encoding: Character encoding
            row_processor: Called once per row, in file order

        Returns:
            Number of rows processed
        """
        count = 0
        for row in self.iter_rows(path, encoding):
            row_processor(row)
            count += 1

        logger.debug(f"Processed {count} rows from {path}")
        return count

    @staticmethod
    def _resolve_selection(
        columns: Sequence[Union[int, str]],
        header: Sequence[str],
        path: Union[str, Path]
    ) -> List[int]:
        indexes = []
        for column in columns:
            if isinstance(column, int):
                indexes.append(column)
                continue
            try:
                indexes.append(list(header).index(column))
            except ValueError:
                raise ConfigurationError(
                    f"Selected column '{column}' not found in {path}. "
                    f"Available columns: {list(header)}"
                ) from None
        return indexes

    @staticmethod
    def _select(record: List[str], selection: Optional[List[int]]) -> Tuple[str, ...]:
        if selection is None:
            return tuple(record)
        width = len(record)
        return tuple(record[i] if i < width else "" for i in selection)
