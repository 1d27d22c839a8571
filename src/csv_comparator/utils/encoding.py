"""
Encoding Resolver

Determines the character encoding used to read a CSV file. A caller-supplied
override always wins; otherwise the file's bytes are inspected with chardet.
Detection is best effort and falls back to DEFAULT_ENCODING.
"""

import codecs
import logging
from pathlib import Path
from typing import Optional, Union

from chardet import UniversalDetector

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"


def detect_encoding(path: Union[str, Path]) -> str:
    """
    Detect the character encoding of a file.

    Args:
        path: File to inspect

    Returns:
        Python codec name, or DEFAULT_ENCODING if detection fails
    """
    detector = UniversalDetector()

    try:
        with open(path, "rb") as f:
            for line in f:
                detector.feed(line)
                if detector.done:
                    break
    except OSError as e:
        logger.warning(f"Encoding detection failed for {path}: {e}. Using {DEFAULT_ENCODING}")
        return DEFAULT_ENCODING
    finally:
        detector.close()

    encoding = detector.result.get("encoding")
    if not encoding:
        logger.debug(f"No encoding detected for {path}, using {DEFAULT_ENCODING}")
        return DEFAULT_ENCODING

    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        logger.warning(f"Detected unsupported encoding {encoding} for {path}. Using {DEFAULT_ENCODING}")
        return DEFAULT_ENCODING

    logger.debug(
        f"Detected encoding {name} for {path} "
        f"(confidence {detector.result.get('confidence', 0.0):.2f})"
    )
    return name


def resolve_encoding(path: Union[str, Path], override: Optional[str] = None) -> str:
    """
    Resolve the encoding to read a file with.

    Args:
        path: File to be read
        override: Encoding forced by the caller, or None to detect it

    Returns:
        Encoding name
    """
    if override:
        return override
    return detect_encoding(path)
