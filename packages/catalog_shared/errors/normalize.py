"""Fallback mapping from builtin exception families to ``ErrorDetail``."""

from __future__ import annotations

from . import codes
from .factories import error_detail
from .types import ErrorCategory, ErrorDetail

# Checked in order; the first matching family wins. The last element is the
# message used when the exception carries none.
_FAMILIES: tuple[tuple[type[Exception], ErrorCategory, str, str], ...] = (
    (KeyError, ErrorCategory.NOT_FOUND, codes.RECORD_NOT_FOUND, "record not found"),
    (PermissionError, ErrorCategory.PRECONDITION, codes.PRECONDITION_FAILED, "precondition failed"),
    (TimeoutError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT, "dependency timeout"),
    (ConnectionError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_UNAVAILABLE, "dependency unavailable"),
    (ValueError, ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT, "invalid argument"),
)


def exception_to_error(exc: Exception) -> ErrorDetail:
    """Normalize a builtin exception family into an ``ErrorDetail``.

    Services put their own mapping in front of this one and fall back to it.
    """
    metadata = {"exception_type": type(exc).__name__}
    for family, category, code, default_message in _FAMILIES:
        if isinstance(exc, family):
            return error_detail(
                category, _message(exc) or default_message, code=code, metadata=metadata
            )
    return error_detail(
        ErrorCategory.INTERNAL,
        _message(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )


def _message(exc: Exception) -> str:
    # KeyError.__str__ quotes its argument.
    if type(exc).__str__ is KeyError.__str__ and len(exc.args) == 1:
        return str(exc.args[0])
    return str(exc)
