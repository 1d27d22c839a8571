"""
Monitoring Module

Prometheus metrics for comparison runs.

Usage:
    from csv_comparator import ComparisonSource, ComparisonOptions, compare
    from csv_comparator.monitoring import ComparisonMetrics, MetricsObserver

    metrics = ComparisonMetrics()
    result = compare(source, options, MetricsObserver(metrics))
    metrics.push_to_gateway("localhost:9091")
"""

from csv_comparator.monitoring.metrics import ComparisonMetrics, MetricsObserver, get_default_metrics

__all__ = [
    "ComparisonMetrics",
    "MetricsObserver",
    "get_default_metrics",
]
