"""
CSV Comparator

Compares an expected and an actual CSV file, matching rows by an identity
column, and classifies every row as kept, inserted, deleted or modified.

Main components:
- comparison: the comparison engine, its options, observers and result
- monitoring: Prometheus metrics for comparison runs
- utils: encoding detection, correlation IDs, filesystem helpers

Usage:
    from csv_comparator import ComparisonOptions, ComparisonSource, compare

    source = ComparisonSource(expected="expected.csv", actual="actual.csv")
    result = compare(source, ComparisonOptions(identity_column=0))

    if result.is_different:
        print(result.summary())
"""

from csv_comparator.comparison import (
    CellDifference,
    ComparisonError,
    ComparisonObserver,
    ComparisonOptions,
    ComparisonResult,
    ComparisonSource,
    CompositeObserver,
    ConfigurationError,
    CsvComparator,
    LoggingObserver,
    ParserSettings,
    ResultCollector,
    ResultOptions,
    RowArityError,
    compare,
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

__version__ = "1.0.0"
