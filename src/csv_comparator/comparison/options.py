"""
Comparison Options

Immutable configuration consumed by the comparison engine: identity column,
encoding override, parser settings and result location. Options can be built
directly, from a mapping, or from a YAML file.
"""

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from csv_comparator.comparison.errors import ConfigurationError

logger = logging.getLogger(__name__)

ColumnSelector = Union[int, str]

_PARSER_KEYS = {
    "delimiter": "delimiter",
    "quote_char": "quote_char",
    "escape_char": "escape_char",
    "header_extraction": "header_extraction_enabled",
    "columns": "selected_columns",
    "skip_empty_lines": "skip_empty_lines",
    "strip_whitespace": "strip_whitespace",
    "strict": "strict",
}
_RESULT_KEYS = {"location"}
_TOP_LEVEL_KEYS = {"identity_column", "encoding", "parser", "result"}


@dataclass(frozen=True)
class ParserSettings:
    """
    Settings for the CSV row reader.

    selected_columns holds zero-based indexes and/or header names. When set,
    rows only contain the selected cells, in selection order.
    """

    delimiter: str = ","
    quote_char: str = '"'
    escape_char: Optional[str] = None
    header_extraction_enabled: bool = True
    selected_columns: Optional[Tuple[ColumnSelector, ...]] = None
    skip_empty_lines: bool = True
    strip_whitespace: bool = False
    strict: bool = True

    def __post_init__(self):
        for name in ("delimiter", "quote_char"):
            value = getattr(self, name)
            if not isinstance(value, str) or len(value) != 1:
                raise ConfigurationError(f"{name} must be a single character, got {value!r}")

        if self.escape_char is not None and (
            not isinstance(self.escape_char, str) or len(self.escape_char) != 1
        ):
            raise ConfigurationError(f"escape_char must be a single character, got {self.escape_char!r}")

        if self.selected_columns is not None:
            columns = tuple(self.selected_columns)
            if not columns:
                raise ConfigurationError("selected_columns cannot be empty")
            for column in columns:
                if isinstance(column, bool) or not isinstance(column, (int, str)):
                    raise ConfigurationError(f"Invalid column selector: {column!r}")
                if isinstance(column, int) and column < 0:
                    raise ConfigurationError(f"Column index cannot be negative: {column}")
            object.__setattr__(self, "selected_columns", columns)


@dataclass(frozen=True)
class ResultOptions:
    """Where result-writing collaborators put their output."""

    location: Optional[Path] = None

    def __post_init__(self):
        if self.location is not None:
            if not isinstance(self.location, (str, os.PathLike)):
                raise ConfigurationError(
                    f"result location must be a path, got {self.location!r}"
                )
            object.__setattr__(self, "location", Path(self.location))


@dataclass(frozen=True)
class ComparisonOptions:
    """
    Options for one comparison run.

    Attributes:
        identity_column: Zero-based position of the column used to match rows
        encoding: Encoding override; None means detect it per file
        parser: CSV parser settings
        result: Result output settings
    """

    identity_column: int = 0
    encoding: Optional[str] = None
    parser: ParserSettings = field(default_factory=ParserSettings)
    result: ResultOptions = field(default_factory=ResultOptions)

    def __post_init__(self):
        if isinstance(self.identity_column, bool) or not isinstance(self.identity_column, int):
            raise ConfigurationError(
                f"identity_column must be an integer, got {self.identity_column!r}"
            )
        if self.identity_column < 0:
            raise ConfigurationError(
                f"identity_column cannot be negative: {self.identity_column}"
            )

        if self.encoding is not None:
            if not isinstance(self.encoding, str):
                raise ConfigurationError(f"encoding must be a string, got {self.encoding!r}")
            try:
                codecs.lookup(self.encoding)
            except LookupError as e:
                raise ConfigurationError(f"Unknown encoding: {self.encoding}") from e

        if not isinstance(self.parser, ParserSettings):
            raise ConfigurationError("parser must be a ParserSettings instance")
        if not isinstance(self.result, ResultOptions):
            raise ConfigurationError("result must be a ResultOptions instance")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ComparisonOptions":
        """
        Build options from a configuration mapping.

        Args:
            config: Mapping with identity_column, encoding, parser and result keys

        Returns:
            ComparisonOptions instance

        Raises:
            ConfigurationError: If the mapping contains unknown or invalid keys
        """
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration must be a mapping")

        _reject_unknown_keys(config, _TOP_LEVEL_KEYS, "configuration")

        parser_config = config.get("parser") or {}
        if not isinstance(parser_config, dict):
            raise ConfigurationError("'parser' must be a mapping")
        _reject_unknown_keys(parser_config, set(_PARSER_KEYS), "parser")

        parser_kwargs = {_PARSER_KEYS[key]: value for key, value in parser_config.items()}
        if parser_kwargs.get("selected_columns") is not None:
            columns = parser_kwargs["selected_columns"]
            if isinstance(columns, (str, int)):
                columns = [columns]
            parser_kwargs["selected_columns"] = tuple(columns)

        result_config = config.get("result") or {}
        if not isinstance(result_config, dict):
            raise ConfigurationError("'result' must be a mapping")
        _reject_unknown_keys(result_config, _RESULT_KEYS, "result")

        try:
            parser = ParserSettings(**parser_kwargs)
        except TypeError as e:
            raise ConfigurationError(f"Invalid parser settings: {e}") from e

        return cls(
            identity_column=config.get("identity_column", 0),
            encoding=config.get("encoding"),
            parser=parser,
            result=ResultOptions(location=result_config.get("location")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict."""
        columns = self.parser.selected_columns
        return {
            "identity_column": self.identity_column,
            "encoding": self.encoding,
            "parser": {
                "delimiter": self.parser.delimiter,
                "quote_char": self.parser.quote_char,
                "escape_char": self.parser.escape_char,
                "header_extraction": self.parser.header_extraction_enabled,
                "columns": list(columns) if columns is not None else None,
                "skip_empty_lines": self.parser.skip_empty_lines,
                "strip_whitespace": self.parser.strip_whitespace,
                "strict": self.parser.strict,
            },
            "result": {
                "location": str(self.result.location) if self.result.location else None,
            },
        }


def load_options(path: Union[str, Path]) -> ComparisonOptions:
    """
    Load comparison options from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        ComparisonOptions instance

    Raises:
        ConfigurationError: If the file is not valid YAML or has invalid keys
        OSError: If the file cannot be read
    """
    path = Path(path)

    with open(path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    logger.debug(f"Loaded comparison options from {path}")
    return ComparisonOptions.from_dict(config or {})


def _reject_unknown_keys(config: Dict[str, Any], allowed: set, section: str) -> None:
    unknown = set(config) - allowed
    if unknown:
        raise ConfigurationError(
            f"Unknown {section} keys: {sorted(unknown)}. "
            f"Allowed keys: {sorted(allowed)}"
        )
