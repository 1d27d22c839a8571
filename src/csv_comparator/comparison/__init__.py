"""
Comparison Module

Main components:
- engine: one-pass matching of actual rows against the expected index
- differ: identity index of the expected dataset
- comparer: cell-level differences of matched rows
- reader: CSV row source
- observer: event hooks and the result collector
- options, models, errors: configuration, value types and exceptions
"""

from csv_comparator.comparison.engine import CsvComparator, compare
from csv_comparator.comparison.errors import ComparisonError, ConfigurationError, RowArityError
from csv_comparator.comparison.models import CellDifference, ComparisonResult, ComparisonSource
from csv_comparator.comparison.observer import (
    ComparisonObserver,
    CompositeObserver,
    LoggingObserver,
    ResultCollector,
)
from csv_comparator.comparison.options import (
    ComparisonOptions,
    ParserSettings,
    ResultOptions,
    load_options,
)

__all__ = [
    "CellDifference",
    "ComparisonError",
    "ComparisonObserver",
    "ComparisonOptions",
    "ComparisonResult",
    "ComparisonSource",
    "CompositeObserver",
    "ConfigurationError",
    "CsvComparator",
    "LoggingObserver",
    "ParserSettings",
    "ResultCollector",
    "ResultOptions",
    "RowArityError",
    "compare",
    "load_options",
]
