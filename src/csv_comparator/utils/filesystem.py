"""
Filesystem helpers for result output locations.
"""

import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def create_directory(location: Optional[Union[str, Path]]) -> Optional[Path]:
    """
    Ensure a result directory exists.

    Args:
        location: Directory to create, including parents. None is a no-op.

    Returns:
        The directory path, or None if no location was given
    """
    if location is None:
        return None

    directory = Path(location)
    directory.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Result directory: {directory}")
    return directory
