"""Precondition failure observability.

Call this before re-raising a WhereaboutsPreconditionError.
"""

from loguru import logger

from whereabouts.domain.errors import WhereaboutsPreconditionError


def log_precondition_failure(err: WhereaboutsPreconditionError, context: dict[str, str | int | float | bool | None]) -> None:
    """Log a rejected operation with context.

    The code, details and context are bound onto the record's extra dict,
    so sinks render them next to the message.

    Args:
        err: The WhereaboutsPreconditionError that occurred
        context: Additional context dictionary for logging
    """
    logger.bind(code=err.code, details=err.details, **context).error(
        f"[WHEREABOUTS] Precondition failed: {err.code}"
    )
