"""
Identity Index

Builds the key -> row index of the expected dataset that the comparison
engine drains while streaming the actual dataset.
"""

import logging
from typing import Dict, Iterable

from csv_comparator.comparison.errors import ConfigurationError
from csv_comparator.comparison.models import Row

logger = logging.getLogger(__name__)


class DataDiffer:
    """
    Indexes rows by the value of their identity column.

    Keys are not required to be unique. When several rows share a key, the
    last one read wins and takes its own position in the index order.
    """

    def __init__(self, identity_column: int = 0):
        """
        Initialize the data differ.

        Args:
            identity_column: Zero-based position of the identity column
        """
        self.identity_column = identity_column
        logger.debug(f"Initialized DataDiffer on column {identity_column}")

    def build_key_index(self, rows: Iterable[Row]) -> Dict[str, Row]:
        """
        Build index for fast key lookups.

        Args:
            rows: Expected rows in file order

        Returns:
            Dictionary mapping key -> row, ordered by the position of each
            surviving row in the file

        Raises:
            ConfigurationError: If a row is too short to hold the identity column
        """
        index: Dict[str, Row] = {}
        overwritten = 0

        for i, row in enumerate(rows):
            key = self.extract_key(row, i)
            if index.pop(key, None) is not None:
                overwritten += 1
                logger.debug(f"Duplicate identity '{key}' at row {i}, replacing earlier row")
            index[key] = row

        if overwritten:
            logger.warning(
                f"Found {overwritten} rows with duplicate identity keys; "
                f"the last occurrence of each key is used"
            )

        logger.debug(f"Built identity index with {len(index)} keys")
        return index

    def extract_key(self, row: Row, row_number: int) -> str:
        """
        Extract the identity key of a row.

        Args:
            row: Row to read the key from
            row_number: Zero-based position of the row, for error messages

        Returns:
            Identity key

        Raises:
            ConfigurationError: If the identity column is outside the row
        """
        if self.identity_column >= len(row):
            raise ConfigurationError(
                f"Identity column {self.identity_column} is out of range for "
                f"row {row_number} with {len(row)} cells: {list(row)}"
            )
        return row[self.identity_column]
