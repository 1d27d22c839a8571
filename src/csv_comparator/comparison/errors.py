"""
Comparison Errors

Exceptions raised by the comparison engine. Parse errors from the csv module
and I/O errors are not wrapped and reach the caller unchanged.
"""


class ComparisonError(Exception):
    """Base class for comparison failures."""
    pass


class ConfigurationError(ComparisonError, ValueError):
    """Raised when sources, options or the identity column are invalid."""
    pass


class RowArityError(ComparisonError):
    """Raised when a matched expected/actual pair has different row lengths."""

    def __init__(self, key: str, expected_width: int, actual_width: int):
        self.key = key
        self.expected_width = expected_width
        self.actual_width = actual_width
        super().__init__(
            f"Row with identity '{key}' has {expected_width} cells in expected "
            f"but {actual_width} cells in actual"
        )
