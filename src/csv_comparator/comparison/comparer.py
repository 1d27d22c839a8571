"""
Row Comparer

Cell-level comparison of a matched expected/actual row pair. Cells are
compared as exact strings, position by position.
"""

import logging
from typing import List, Sequence

from csv_comparator.comparison.errors import RowArityError
from csv_comparator.comparison.models import CellDifference, Row

logger = logging.getLogger(__name__)


class RowComparer:
    """
    Compares rows that share an identity key.

    Headers label the differing cells. When the header is shorter than the
    row, the zero-based column position is used as the label.
    """

    def __init__(self, identity_column: int = 0):
        """
        Initialize the row comparer.

        Args:
            identity_column: Position of the identity column, used in error messages
        """
        self.identity_column = identity_column
        logger.debug("Initialized RowComparer")

    def rows_equal(self, expected_row: Row, actual_row: Row) -> bool:
        """
        Check whether two rows are identical cell for cell, including length.
        """
        return tuple(expected_row) == tuple(actual_row)

    def get_differences(
        self,
        headers: Sequence[str],
        expected_row: Row,
        actual_row: Row
    ) -> List[CellDifference]:
        """
        Compute the cells that differ between two rows.

        Args:
            headers: Column names
            expected_row: Row from the expected dataset
            actual_row: Row from the actual dataset

        Returns:
            Differences in column order; equal cells are omitted

        Raises:
            RowArityError: If the rows have different lengths
        """
        self._check_arity(expected_row, actual_row)

        differences = []

        for index, (expected_cell, actual_cell) in enumerate(zip(expected_row, actual_row)):
            if expected_cell != actual_cell:
                differences.append(CellDifference(
                    column=self._column_name(headers, index),
                    expected=expected_cell,
                    actual=actual_cell
                ))

        return differences

    def _check_arity(self, expected_row: Row, actual_row: Row) -> None:
        if len(expected_row) != len(actual_row):
            key = actual_row[self.identity_column] if self.identity_column < len(actual_row) else "?"
            logger.error(
                f"Row width mismatch for identity '{key}': "
                f"expected={len(expected_row)}, actual={len(actual_row)}"
            )
            raise RowArityError(key, len(expected_row), len(actual_row))

    @staticmethod
    def _column_name(headers: Sequence[str], index: int) -> str:
        if index < len(headers):
            return headers[index]
        return str(index)
