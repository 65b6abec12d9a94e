"""Relational-store exception normalization helpers."""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError

from packages.catalog_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
)


def normalize_postgres_error(exc: Exception) -> ErrorDetail:
    """Map low-level store exceptions into shared structured error semantics."""
    metadata = {"exception_type": type(exc).__name__}
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        metadata["driver_exception_type"] = type(exc.orig).__name__

    if isinstance(exc, IntegrityError):
        return conflict_error(
            "store constraint violated",
            code=codes.CONSTRAINT_VIOLATION,
            metadata=metadata,
        )

    if isinstance(exc, (OperationalError, TimeoutError, ConnectionError)):
        return dependency_error(
            "relational store unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, (InterfaceError, DBAPIError)):
        return dependency_error(
            "relational store request failed",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
        )

    return internal_error(
        "unexpected relational store failure",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
