"""
Comparison Observers

Observers receive the classification events of a comparison run as they
happen. The engine calls the hooks in a fixed order: comparison_started,
one row event per actual row (in file order), one row_deleted per unmatched
expected row, then comparison_finished. Observers cannot influence how rows
are classified.

Built-in observers:
- ComparisonObserver: no-op base class, override the hooks you need
- ResultCollector: accumulates rows into a ComparisonResult
- LoggingObserver: logs every event
- CompositeObserver: forwards events to several observers
"""

import logging
from typing import List, Optional, Sequence, TYPE_CHECKING

from csv_comparator.comparison.models import (
    CellDifference,
    ComparisonResult,
    ComparisonSource,
    Headers,
    Row,
)

if TYPE_CHECKING:
    from csv_comparator.comparison.options import ComparisonOptions

logger = logging.getLogger(__name__)


class ComparisonObserver:
    """Receives comparison events. Every hook is a no-op by default."""

    def comparison_started(self, source: ComparisonSource, options: "ComparisonOptions") -> None:
        pass

    def row_kept(self, row: Row, headers: Headers, options: "ComparisonOptions") -> None:
        pass

    def row_deleted(self, row: Row, headers: Headers, options: "ComparisonOptions") -> None:
        pass

    def row_inserted(self, row: Row, headers: Headers, options: "ComparisonOptions") -> None:
        pass

    def row_modified(
        self,
        row: Row,
        headers: Headers,
        options: "ComparisonOptions",
        diffs: Sequence[CellDifference]
    ) -> None:
        pass

    def comparison_finished(
        self,
        source: ComparisonSource,
        options: "ComparisonOptions",
        result: ComparisonResult
    ) -> None:
        pass


class ResultCollector(ComparisonObserver):
    """
    Accumulates classified rows for the final ComparisonResult.

    Cell differences of modified rows are not retained; observers that need
    them should keep them from row_modified.
    """

    def __init__(self):
        self.is_deleted = False
        self.is_inserted = False
        self.is_modified = False
        self.rows_kept: List[Row] = []
        self.rows_deleted: List[Row] = []
        self.rows_inserted: List[Row] = []
        self.rows_modified: List[Row] = []

    def row_kept(self, row, headers, options):
        self.rows_kept.append(row)

    def row_deleted(self, row, headers, options):
        self.is_deleted = True
        self.rows_deleted.append(row)

    def row_inserted(self, row, headers, options):
        self.is_inserted = True
        self.rows_inserted.append(row)

    def row_modified(self, row, headers, options, diffs):
        self.is_modified = True
        self.rows_modified.append(row)

    def to_result(self, headers: Headers) -> ComparisonResult:
        """
        Freeze the accumulated state.

        Args:
            headers: Column names of the comparison

        Returns:
            Immutable ComparisonResult
        """
        return ComparisonResult(
            headers=tuple(headers),
            rows_kept=tuple(self.rows_kept),
            rows_deleted=tuple(self.rows_deleted),
            rows_inserted=tuple(self.rows_inserted),
            rows_modified=tuple(self.rows_modified),
            is_deleted=self.is_deleted,
            is_inserted=self.is_inserted,
            is_modified=self.is_modified,
        )


class LoggingObserver(ComparisonObserver):
    """Logs every comparison event to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        """
        Initialize the logging observer.

        Args:
            log: Logger to write to (defaults to this module's logger)
            level: Level for per-row events; start and finish use INFO
        """
        self.log = log or logger
        self.level = level

    def comparison_started(self, source, options):
        self.log.info(
            f"Comparing expected={source.expected} with actual={source.actual} "
            f"on identity column {options.identity_column}"
        )

    def row_kept(self, row, headers, options):
        self.log.log(self.level, f"Kept: {list(row)}")

    def row_deleted(self, row, headers, options):
        self.log.log(self.level, f"Deleted: {list(row)}")

    def row_inserted(self, row, headers, options):
        self.log.log(self.level, f"Inserted: {list(row)}")

    def row_modified(self, row, headers, options, diffs):
        changes = ", ".join(f"{d.column}: {d.expected!r} -> {d.actual!r}" for d in diffs)
        self.log.log(self.level, f"Modified: {list(row)} ({changes})")

    def comparison_finished(self, source, options, result):
        self.log.info(f"Comparison finished: {result.summary()}")


class CompositeObserver(ComparisonObserver):
    """Forwards every event to each wrapped observer, in order."""

    def __init__(self, *observers: ComparisonObserver):
        for observer in observers:
            if not isinstance(observer, ComparisonObserver):
                raise TypeError(f"Not a ComparisonObserver: {observer!r}")
        self.observers = list(observers)

    def comparison_started(self, source, options):
        for observer in self.observers:
            observer.comparison_started(source, options)

    def row_kept(self, row, headers, options):
        for observer in self.observers:
            observer.row_kept(row, headers, options)

    def row_deleted(self, row, headers, options):
        for observer in self.observers:
            observer.row_deleted(row, headers, options)

    def row_inserted(self, row, headers, options):
        for observer in self.observers:
            observer.row_inserted(row, headers, options)

    def row_modified(self, row, headers, options, diffs):
        for observer in self.observers:
            observer.row_modified(row, headers, options, diffs)

    def comparison_finished(self, source, options, result):
        for observer in self.observers:
            observer.comparison_finished(source, options, result)
