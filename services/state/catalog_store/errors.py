"""Catalog Store exception taxonomy and error normalization."""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError

from packages.catalog_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    exception_to_error,
    not_found_error,
    precondition_error,
    validation_error,
)
from resources.substrates.postgres import normalize_postgres_error

# Store errors are re-exported under catalog names and never wrapped.
ConstraintViolation = IntegrityError
TransportError = (OperationalError, InterfaceError, TimeoutError, ConnectionError)


class RecordDoesNotExist(KeyError):
    """A filter matched zero rows on an operation that requires exactly one."""

    def __init__(self, table: str, identifiers: dict[str, Any]) -> None:
        self.table = table
        self.identifiers = identifiers
        super().__init__(
            f"Record in {table} with identifiers {identifiers!r} does not exist."
        )

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownColumn(ValueError):
    """A filter, patch, or projection named a column the table does not have."""

    def __init__(self, table: str, column: str) -> None:
        self.table = table
        self.column = column
        super().__init__(f"unknown column {column!r} for table {table}")


class PreconditionFailed(Exception):
    """Mutation refused because the target record is in a protected state."""


class DeletePublishedGranule(PreconditionFailed):
    """Delete refused because the granule is still published."""

    def __init__(self, granule_id: str) -> None:
        self.granule_id = granule_id
        super().__init__(
            f"You cannot delete a granule that is published to CMR. "
            f"Remove it from CMR first: {granule_id}"
        )


class ConflictingWrite(RuntimeError):
    """A conditional write lost its guard and was not applied."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class BulkOperationError(Exception):
    """One or more per-item failures collected during a bulk operation."""

    def __init__(self, errors: Sequence[BaseException], results: Sequence[Any] = ()) -> None:
        self.errors = tuple(errors)
        self.results = tuple(results)
        super().__init__(
            f"{len(self.errors)} bulk item(s) failed: "
            + "; ".join(str(error) for error in self.errors)
        )

    def to_output(self) -> dict[str, Any]:
        """Return the JSON-ready failure summary stored as an async operation output."""
        return {
            "name": type(self).__name__,
            "message": str(self),
            "errors": [catalog_exception_to_error(error).to_output() for error in self.errors],
        }


def catalog_exception_to_error(exc: Exception) -> ErrorDetail:
    """Normalize Catalog Store exceptions into shared ``ErrorDetail`` values."""
    metadata = {"exception_type": type(exc).__name__}
    if isinstance(exc, RecordDoesNotExist):
        return not_found_error(
            str(exc),
            code=codes.RECORD_NOT_FOUND,
            metadata={**metadata, "table": exc.table},
        )
    if isinstance(exc, UnknownColumn):
        return validation_error(
            str(exc), code=codes.UNKNOWN_COLUMN, metadata={**metadata, "table": exc.table}
        )
    if isinstance(exc, PreconditionFailed):
        return precondition_error(str(exc), metadata=metadata)
    if isinstance(exc, ConflictingWrite):
        return conflict_error(
            exc.reason, code=codes.CONFLICTING_WRITE, metadata=metadata
        )
    if isinstance(exc, (SQLAlchemyError, TimeoutError, ConnectionError)):
        return normalize_postgres_error(exc)
    return exception_to_error(exc)
