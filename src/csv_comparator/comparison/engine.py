"""
CSV Comparison Engine

Compares an expected and an actual CSV file in a single pass over the actual
file. Expected rows are indexed by their identity column; each actual row is
looked up and removed from the index and classified as kept, modified or
inserted. Whatever is left in the index afterwards has been deleted.
"""

import logging
import time
from dataclasses import replace
from itertools import islice
from typing import Dict, List, Optional

from csv_comparator.comparison.comparer import RowComparer
from csv_comparator.comparison.differ import DataDiffer
from csv_comparator.comparison.errors import ConfigurationError
from csv_comparator.comparison.models import ComparisonResult, ComparisonSource, Headers, Row
from csv_comparator.comparison.observer import ComparisonObserver, ResultCollector
from csv_comparator.comparison.options import ComparisonOptions
from csv_comparator.comparison.reader import CsvRowReader
from csv_comparator.utils.correlation import CorrelationContext
from csv_comparator.utils.encoding import resolve_encoding
from csv_comparator.utils.filesystem import create_directory

logger = logging.getLogger(__name__)


class CsvComparator:
    """
    Runs one comparison of two CSV files.

    The caller's observer, if any, is notified of each event before the
    built-in ResultCollector that backs the returned ComparisonResult.
    """

    def __init__(
        self,
        source: ComparisonSource,
        options: ComparisonOptions,
        observer: Optional[ComparisonObserver] = None
    ):
        """
        Initialize the comparator.

        Args:
            source: Expected and actual files
            options: Comparison options
            observer: Optional observer notified of every comparison event

        Raises:
            ConfigurationError: If source or options are missing, or observer
                is not a ComparisonObserver
        """
        if source is None:
            raise ConfigurationError("source cannot be None")
        if options is None:
            raise ConfigurationError("options cannot be None")
        if observer is not None and not isinstance(observer, ComparisonObserver):
            raise ConfigurationError(f"observer must be a ComparisonObserver, got {type(observer).__name__}")

        self.source = source
        self.options = options
        self.observer = observer

    def compare(self) -> ComparisonResult:
        """
        Compare the expected and actual files.

        Returns:
            Immutable ComparisonResult

        Raises:
            ConfigurationError: If the identity column does not fit the data
            RowArityError: If a matched row pair has different lengths
            csv.Error: If either file is malformed
            OSError: If either file cannot be read
        """
        with CorrelationContext() as run_id:
            logger.info(
                f"Starting comparison {run_id}: expected={self.source.expected}, "
                f"actual={self.source.actual}, identity column={self.options.identity_column}"
            )
            start_time = time.time()

            try:
                result = self._run()
            except Exception as e:
                logger.error(f"Comparison {run_id} failed: {e}")
                raise

            duration = time.time() - start_time
            logger.info(f"Comparison {run_id} completed in {duration:.3f}s: {result.summary()}")
            return result

    def _run(self) -> ComparisonResult:
        source = self.source
        options = self.options
        collector = ResultCollector()
        observers: List[ComparisonObserver] = [collector]
        if self.observer is not None:
            observers.insert(0, self.observer)

        create_directory(options.result.location)

        for observer in observers:
            observer.comparison_started(source, options)

        expected_encoding = resolve_encoding(source.expected, options.encoding)
        actual_encoding = resolve_encoding(source.actual, options.encoding)
        logger.debug(f"Encodings: expected={expected_encoding}, actual={actual_encoding}")

        headers = self._get_headers(expected_encoding)
        if headers and options.identity_column >= len(headers):
            raise ConfigurationError(
                f"Identity column {options.identity_column} is out of range "
                f"for {len(headers)} columns: {list(headers)}"
            )

        reader = CsvRowReader(options.parser)
        differ = DataDiffer(options.identity_column)
        comparer = RowComparer(options.identity_column)

        expected_rows = reader.read_all(source.expected, expected_encoding)
        expected_index: Dict[str, Row] = differ.build_key_index(expected_rows)
        logger.info(f"Indexed {len(expected_index)} of {len(expected_rows)} expected rows")
        del expected_rows

        row_number = 0

        def process_actual_row(actual_row: Row) -> None:
            nonlocal row_number
            key = differ.extract_key(actual_row, row_number)
            row_number += 1

            expected_row = expected_index.pop(key, None)

            if expected_row is None:
                for observer in observers:
                    observer.row_inserted(actual_row, headers, options)
            elif comparer.rows_equal(expected_row, actual_row):
                for observer in observers:
                    observer.row_kept(actual_row, headers, options)
            else:
                diffs = comparer.get_differences(headers, expected_row, actual_row)
                for observer in observers:
                    observer.row_modified(actual_row, headers, options, diffs)

        actual_count = reader.parse(source.actual, actual_encoding, process_actual_row)
        logger.info(
            f"Processed {actual_count} actual rows, "
            f"{len(expected_index)} expected rows left unmatched"
        )

        for expected_row in expected_index.values():
            for observer in observers:
                observer.row_deleted(expected_row, headers, options)
        expected_index.clear()

        result = collector.to_result(headers)

        for observer in observers:
            observer.comparison_finished(source, options, result)

        return result

    def _get_headers(self, encoding: str) -> Headers:
        """
        Read the header row of the expected file.

        Headers are only taken when header extraction is enabled and the file
        has at least two rows; otherwise they are empty.
        """
        if not self.options.parser.header_extraction_enabled:
            return ()

        reader = CsvRowReader(replace(self.options.parser, header_extraction_enabled=False))
        rows = reader.iter_rows(self.source.expected, encoding)
        try:
            first_rows = list(islice(rows, 2))
        finally:
            rows.close()

        if len(first_rows) > 1:
            return first_rows[0]
        return ()


def compare(
    source: ComparisonSource,
    options: ComparisonOptions,
    observer: Optional[ComparisonObserver] = None
) -> ComparisonResult:
    """
    Compare the expected and actual files of a source.

    Args:
        source: Expected and actual files
        options: Comparison options
        observer: Optional observer notified of every comparison event

    Returns:
        Immutable ComparisonResult
    """
    return CsvComparator(source, options, observer).compare()
