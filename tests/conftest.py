"""
Pytest configuration and shared fixtures.

Provides helpers to write CSV files into a temporary directory.
"""

import csv

import pytest

from csv_comparator.utils.correlation import clear_correlation_id


@pytest.fixture
def write_csv(tmp_path):
    """
    Factory fixture that writes rows to a CSV file under tmp_path.

    Usage:
        path = write_csv("expected.csv", [["id", "name"], ["1", "a"]])
    """
    def _write(name, rows, encoding="utf-8", delimiter=","):
        path = tmp_path / name
        with open(path, "w", encoding=encoding, newline="") as f:
            writer = csv.writer(f, delimiter=delimiter, lineterminator="\n")
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture(autouse=True)
def clean_correlation_id():
    """Ensure no correlation ID leaks between tests."""
    clear_correlation_id()
    yield
    clear_correlation_id()
