"""
Prometheus Metrics for CSV Comparison

Counters, gauges and histograms describing comparison runs, and an observer
that records them as a comparison progresses. Metrics live in their own
CollectorRegistry so several instances can coexist (e.g. in tests), and can
be pushed to a Prometheus Pushgateway at the end of a batch job.
"""

import logging
import time
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, push_to_gateway

from csv_comparator.comparison.observer import ComparisonObserver

logger = logging.getLogger(__name__)

CLASSIFICATIONS = ("kept", "deleted", "inserted", "modified")


class ComparisonMetrics:
    """Prometheus metrics for comparison runs."""

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        namespace: str = "csv_comparison"
    ):
        """
        Initialize comparison metrics.

        Args:
            registry: Prometheus registry (a new one is created if not provided)
            namespace: Metric name prefix
        """
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()

        # Run counter
        self.runs_total = Counter(
            f'{namespace}_runs_total',
            'Total number of comparison runs by outcome',
            ['status'],
            registry=self.registry
        )

        # Row classifications
        self.rows_total = Counter(
            f'{namespace}_rows_total',
            'Total rows classified, by classification',
            ['classification'],
            registry=self.registry
        )

        # Cell differences in modified rows
        self.cell_differences_total = Counter(
            f'{namespace}_cell_differences_total',
            'Total differing cells in modified rows, by column',
            ['column'],
            registry=self.registry
        )

        # Run duration
        self.duration_seconds = Histogram(
            f'{namespace}_duration_seconds',
            'Duration of comparison runs in seconds',
            buckets=[0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300],
            registry=self.registry
        )

        # Row counts of the most recent run
        self.last_run_rows = Gauge(
            f'{namespace}_last_run_rows',
            'Rows per classification in the most recent run',
            ['classification'],
            registry=self.registry
        )

        logger.info(f"ComparisonMetrics initialized with namespace: {namespace}")

    def record_row(self, classification: str) -> None:
        """Count one classified row."""
        self.rows_total.labels(classification=classification).inc()

    def record_cell_difference(self, column: str) -> None:
        """Count one differing cell."""
        self.cell_differences_total.labels(column=column).inc()

    def record_run(
        self,
        status: str,
        duration_seconds: float,
        counts: Optional[Dict[str, int]] = None
    ) -> None:
        """
        Record a finished comparison run.

        Args:
            status: Run outcome (identical/different/failed)
            duration_seconds: Duration in seconds
            counts: Rows per classification, for the last-run gauges
        """
        self.runs_total.labels(status=status).inc()
        self.duration_seconds.observe(duration_seconds)

        if counts is not None:
            for classification in CLASSIFICATIONS:
                self.last_run_rows.labels(classification=classification).set(
                    counts.get(classification, 0)
                )

        logger.debug(f"Recorded {status} comparison run ({duration_seconds:.3f}s)")

    def push_to_gateway(self, gateway_url: str, job_name: str = "csv_comparison") -> None:
        """
        Push metrics to Prometheus Pushgateway.

        Args:
            gateway_url: Pushgateway URL
            job_name: Job name for metrics

        Raises:
            Exception: If push fails
        """
        try:
            push_to_gateway(gateway_url, job=job_name, registry=self.registry)
            logger.info(f"Pushed metrics to gateway: {gateway_url}")
        except Exception as e:
            logger.error(f"Failed to push metrics to gateway: {e}")
            raise


class MetricsObserver(ComparisonObserver):
    """Records comparison events into ComparisonMetrics."""

    def __init__(self, metrics: Optional[ComparisonMetrics] = None):
        self.metrics = metrics or get_default_metrics()
        self._start_time: Optional[float] = None

    def comparison_started(self, source, options):
        self._start_time = time.time()

    def row_kept(self, row, headers, options):
        self.metrics.record_row("kept")

    def row_deleted(self, row, headers, options):
        self.metrics.record_row("deleted")

    def row_inserted(self, row, headers, options):
        self.metrics.record_row("inserted")

    def row_modified(self, row, headers, options, diffs):
        self.metrics.record_row("modified")
        for diff in diffs:
            self.metrics.record_cell_difference(diff.column)

    def comparison_finished(self, source, options, result):
        duration = time.time() - self._start_time if self._start_time is not None else 0.0
        self.metrics.record_run(
            status="different" if result.is_different else "identical",
            duration_seconds=duration,
            counts={
                "kept": len(result.rows_kept),
                "deleted": len(result.rows_deleted),
                "inserted": len(result.rows_inserted),
                "modified": len(result.rows_modified),
            }
        )


# Global metrics instance
_default_metrics: Optional[ComparisonMetrics] = None


def get_default_metrics() -> ComparisonMetrics:
    """
    Get or create the process-wide ComparisonMetrics instance.

    Returns:
        Default ComparisonMetrics instance
    """
    global _default_metrics

    if _default_metrics is None:
        _default_metrics = ComparisonMetrics()
        logger.info("Created default comparison metrics")

    return _default_metrics
