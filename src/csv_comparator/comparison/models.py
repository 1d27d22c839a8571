"""
Comparison Data Model

Value types shared by the comparison engine, its observers and callers.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

from csv_comparator.comparison.errors import ConfigurationError

Row = Tuple[str, ...]
Headers = Tuple[str, ...]


@dataclass(frozen=True)
class ComparisonSource:
    """The pair of files to compare."""

    expected: Path
    actual: Path

    def __post_init__(self):
        if self.expected is None or self.actual is None:
            raise ConfigurationError("Both expected and actual files are required")

        object.__setattr__(self, "expected", Path(self.expected))
        object.__setattr__(self, "actual", Path(self.actual))


@dataclass(frozen=True)
class CellDifference:
    """One column where a matched expected/actual pair disagrees."""

    column: str
    expected: str
    actual: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "column": self.column,
            "expected": self.expected,
            "actual": self.actual
        }


@dataclass(frozen=True)
class ComparisonResult:
    """
    Outcome of one comparison run.

    Built once, after every actual row has been classified and the leftover
    expected rows have been reported as deleted. Row sequences keep the order
    in which the rows were classified: kept, inserted and modified follow the
    actual file, deleted follows the expected file.
    """

    headers: Headers
    rows_kept: Tuple[Row, ...]
    rows_deleted: Tuple[Row, ...]
    rows_inserted: Tuple[Row, ...]
    rows_modified: Tuple[Row, ...]
    is_deleted: bool
    is_inserted: bool
    is_modified: bool

    @property
    def is_different(self) -> bool:
        return self.is_deleted or self.is_inserted or self.is_modified

    def summary(self) -> Dict[str, Any]:
        """
        Summarize the result as counts and flags.

        Returns:
            Dictionary suitable for logging or JSON output
        """
        return {
            "kept_count": len(self.rows_kept),
            "deleted_count": len(self.rows_deleted),
            "inserted_count": len(self.rows_inserted),
            "modified_count": len(self.rows_modified),
            "is_deleted": self.is_deleted,
            "is_inserted": self.is_inserted,
            "is_modified": self.is_modified,
            "is_different": self.is_different
        }
