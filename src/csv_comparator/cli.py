"""
CSV Comparison Tool

Compares an expected and an actual CSV file and prints a JSON report of
kept, deleted, inserted and modified rows.

Usage:
    csv-compare expected.csv actual.csv --identity-column 0
    csv-compare expected.csv actual.csv --config comparison.yaml --show-rows
    csv-compare expected.csv actual.csv --no-header --delimiter ';' --fail-on-diff
    csv-compare expected.csv actual.csv --pushgateway localhost:9091

Set JSON_LOGGING=true for structured JSON logs on stderr.
"""

import argparse
import csv
import json
import logging
import os
import sys
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from csv_comparator.comparison.engine import compare
from csv_comparator.comparison.errors import ComparisonError
from csv_comparator.comparison.models import ComparisonSource
from csv_comparator.comparison.observer import ComparisonObserver, CompositeObserver, LoggingObserver
from csv_comparator.comparison.options import ComparisonOptions, ResultOptions, load_options
from csv_comparator.monitoring.metrics import ComparisonMetrics, MetricsObserver
from csv_comparator.utils.correlation import (
    CorrelationContext,
    get_correlation_id,
    setup_correlation_logging,
)

logger = logging.getLogger(__name__)


class StructuredJSONFormatter(logging.Formatter):
    """JSON formatter with correlation ID support."""

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'correlation_id': getattr(record, 'correlation_id', None) or get_correlation_id(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ModifiedRowRecorder(ComparisonObserver):
    """Keeps the cell differences of modified rows for the report."""

    def __init__(self):
        self.modifications: List[Dict[str, Any]] = []

    def row_modified(self, row, headers, options, diffs):
        self.modifications.append({
            "row": list(row),
            "differences": [diff.to_dict() for diff in diffs]
        })


def configure_logging(verbose: bool = False) -> logging.Handler:
    """
    Configure package logging for the command line.

    Args:
        verbose: Enable debug logging

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler(sys.stderr)

    if os.getenv('JSON_LOGGING', 'false').lower() == 'true':
        handler.setFormatter(StructuredJSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(correlation_id)s] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

    setup_correlation_logging(handler)

    package_logger = logging.getLogger("csv_comparator")
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    package_logger.addHandler(handler)
    package_logger.propagate = False

    return handler


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="csv-compare",
        description="Compare an expected and an actual CSV file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument("expected", help="Expected CSV file")
    parser.add_argument("actual", help="Actual CSV file")
    parser.add_argument("--config", help="YAML file with comparison options")
    parser.add_argument("--identity-column", type=int, help="Zero-based identity column")
    parser.add_argument("--encoding", help="Encoding of both files (detected if omitted)")
    parser.add_argument("--delimiter", help="Field delimiter")
    parser.add_argument("--no-header", action="store_true", help="Files have no header row")
    parser.add_argument(
        "--columns",
        nargs="+",
        help="Columns to compare, by zero-based index or header name"
    )
    parser.add_argument("--result-dir", help="Directory for result output")
    parser.add_argument("--show-rows", action="store_true", help="Include rows and cell differences")
    parser.add_argument(
        "--fail-on-diff",
        action="store_true",
        help="Exit with status 1 when the files differ"
    )
    parser.add_argument("--pushgateway", help="Prometheus Pushgateway URL for run metrics")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    return parser


def build_options(args: argparse.Namespace) -> ComparisonOptions:
    """
    Build comparison options from a config file and command line overrides.

    Args:
        args: Parsed command line arguments

    Returns:
        ComparisonOptions instance
    """
    options = load_options(args.config) if args.config else ComparisonOptions()

    parser_overrides: Dict[str, Any] = {}
    if args.delimiter is not None:
        parser_overrides["delimiter"] = args.delimiter
    if args.no_header:
        parser_overrides["header_extraction_enabled"] = False
    if args.columns:
        parser_overrides["selected_columns"] = tuple(
            int(column) if column.isdigit() else column for column in args.columns
        )

    overrides: Dict[str, Any] = {}
    if parser_overrides:
        overrides["parser"] = replace(options.parser, **parser_overrides)
    if args.identity_column is not None:
        overrides["identity_column"] = args.identity_column
    if args.encoding is not None:
        overrides["encoding"] = args.encoding
    if args.result_dir is not None:
        overrides["result"] = ResultOptions(location=args.result_dir)

    return replace(options, **overrides) if overrides else options


def run(args: argparse.Namespace, metrics: Optional[ComparisonMetrics] = None) -> Dict[str, Any]:
    """
    Run a comparison and build the report.

    Args:
        args: Parsed command line arguments
        metrics: Metrics to record the run into, if any

    Returns:
        Report dictionary
    """
    options = build_options(args)
    source = ComparisonSource(expected=args.expected, actual=args.actual)

    recorder = ModifiedRowRecorder()
    observers: List[ComparisonObserver] = [LoggingObserver(), recorder]
    if metrics is not None:
        observers.append(MetricsObserver(metrics))

    result = compare(source, options, CompositeObserver(*observers))

    report: Dict[str, Any] = {
        "expected": str(source.expected),
        "actual": str(source.actual),
        "options": options.to_dict(),
        "headers": list(result.headers),
        "summary": result.summary(),
    }

    if args.show_rows:
        report["rows"] = {
            "kept": [list(row) for row in result.rows_kept],
            "deleted": [list(row) for row in result.rows_deleted],
            "inserted": [list(row) for row in result.rows_inserted],
            "modified": recorder.modifications,
        }

    return report


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = configure_logging(args.verbose)
    metrics = ComparisonMetrics() if args.pushgateway else None

    try:
        with CorrelationContext():
            start_time = time.time()
            try:
                report = run(args, metrics)
            except (ComparisonError, csv.Error, OSError, ValueError) as e:
                logger.error(f"Error: {e}", exc_info=args.verbose)
                if metrics is not None:
                    metrics.record_run("failed", time.time() - start_time)
                    _push_metrics(metrics, args.pushgateway)
                return 1

            if metrics is not None:
                _push_metrics(metrics, args.pushgateway)

        print(json.dumps(report, indent=2))

        if args.fail_on_diff and report["summary"]["is_different"]:
            return 1
        return 0
    finally:
        package_logger = logging.getLogger("csv_comparator")
        package_logger.removeHandler(handler)
        package_logger.propagate = True


def _push_metrics(metrics: ComparisonMetrics, gateway_url: str) -> None:
    try:
        metrics.push_to_gateway(gateway_url)
    except Exception as e:
        logger.warning(f"Metrics were not pushed: {e}")


if __name__ == "__main__":
    sys.exit(main())
