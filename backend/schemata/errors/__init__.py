"""Monadic Error Handling System

Key components:
- Result[T, E]: Monadic container for success/failure
- AppError: Base error type with full context
- ErrorCode: Hierarchical error code taxonomy
- Builder functions: Ergonomic error construction

Usage:
    from schemata.errors import Ok, Err, Result

    match schema.parse_result(payload):
        case Ok(data):
            handle(data)
        case Err(error):
            log.warning("rejected", attribute=error.attribute)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
    collect_results,
    sequence_results,
)

from .builders import (
    validation_error,
    internal_error,
    schema_definition_error,
)

from .handlers import (
    AppErrorException,
    log_error,
    raise_result,
)

__all__ = [
    # Core types
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "collect_results",
    "sequence_results",
    # Validation (E2xxx)
    "validation_error",
    # Internal (E9xxx)
    "internal_error",
    "schema_definition_error",
    # Handlers
    "AppErrorException",
    "log_error",
    "raise_result",
]
