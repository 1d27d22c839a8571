"""
Correlation ID Utility

Tags every log record emitted during a comparison run with the ID of that
run, so interleaved output from several runs can be told apart.
"""

import uuid
import contextvars
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Context variable for the current run ID
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id',
    default=None
)


def generate_correlation_id() -> str:
    """
    Generate a new run ID.

    Returns:
        Random UUID4 string
    """
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID of the current context, or None."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Bind a run ID to the current context.

    Args:
        correlation_id: Run ID

    Raises:
        ValueError: If correlation_id is empty or not a string
    """
    if not correlation_id or not isinstance(correlation_id, str):
        raise ValueError("Correlation ID must be a non-empty string")

    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Unbind the run ID from the current context."""
    _correlation_id.set(None)


class CorrelationContext:
    """
    Context manager that scopes a correlation ID to one comparison run.

    An ID already set by the caller is reused, so a run started from the
    command line shares the CLI's ID. The previous ID is restored on exit.
    """

    def __init__(self, correlation_id: Optional[str] = None):
        """
        Create a context for one run.

        Args:
            correlation_id: ID to use. Defaults to the current ID, or a new one
        """
        self.correlation_id = correlation_id
        self.previous_id = None

    def __enter__(self) -> str:
        self.previous_id = get_correlation_id()

        if not self.correlation_id:
            self.correlation_id = self.previous_id or generate_correlation_id()
        set_correlation_id(self.correlation_id)

        logger.debug(f"Run ID bound: {self.correlation_id}")
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_id:
            set_correlation_id(self.previous_id)
        else:
            clear_correlation_id()


def correlation_id_filter(record: logging.LogRecord) -> bool:
    """
    Stamp a log record with the current run ID.

    Args:
        record: Record being handled

    Returns:
        True, records are never dropped
    """
    record.correlation_id = get_correlation_id() or "N/A"
    return True


def setup_correlation_logging(handler: logging.Handler) -> None:
    """
    Configure a handler to stamp records with correlation IDs.

    Records propagated from child loggers pass through handler filters,
    not through the filters of parent loggers.

    Args:
        handler: Handler to configure
    """
    handler.addFilter(correlation_id_filter)
