"""Exception Bridges

Converts between the Result-based error flow and exception-based flow
for callers that do not pattern-match on Result.
"""
from __future__ import annotations

from schemata.logging import get_logger

from .types import AppError, Result, T

log = get_logger("errors.handlers")


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Use this when you need to raise an AppError in code that
    doesn't use the Result monad.
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def log_error(error: AppError) -> None:
    """Log an AppError at a level matching its HTTP status."""
    log_method = log.warning if error.code.http_status < 500 else log.error
    log_method(
        "app_error",
        error_code=error.code.name,
        error_code_num=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        metadata=error.metadata,
    )


def raise_result(result: Result[T, AppError]) -> T:
    """Return the Ok value or raise the Err as AppErrorException.

    Usage:
        params = raise_result(boundary.parse_ingress(raw))
    """
    if result.is_err():
        raise AppErrorException(result.unwrap_err())
    return result.unwrap()
