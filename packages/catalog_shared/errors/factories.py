"""Constructors for ``ErrorDetail`` values, one per category."""

from __future__ import annotations

from functools import partial
from typing import Mapping

from .types import ErrorCategory, ErrorDetail


def error_detail(
    category: ErrorCategory,
    message: str,
    *,
    code: str | None = None,
    retryable: bool | None = None,
    metadata: Mapping[str, str] | None = None,
) -> ErrorDetail:
    """Build an ``ErrorDetail``, filling the category's default code and retryability."""
    return ErrorDetail(
        code=code or category.default_code,
        message=message,
        category=category,
        retryable=category.retryable_by_default if retryable is None else retryable,
        metadata=dict(metadata or {}),
    )


validation_error = partial(error_detail, ErrorCategory.VALIDATION)
not_found_error = partial(error_detail, ErrorCategory.NOT_FOUND)
conflict_error = partial(error_detail, ErrorCategory.CONFLICT)
precondition_error = partial(error_detail, ErrorCategory.PRECONDITION)
dependency_error = partial(error_detail, ErrorCategory.DEPENDENCY)
internal_error = partial(error_detail, ErrorCategory.INTERNAL)
