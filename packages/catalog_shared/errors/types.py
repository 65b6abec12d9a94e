"""Structured error shape reported by catalog components.

Data-layer failures are raised as Python exceptions. When a caller has to
report one instead (an async operation's output, a bulk item failure), the
exception is reduced to an ``ErrorDetail``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from . import codes


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PRECONDITION = "precondition"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"

    @property
    def default_code(self) -> str:
        return _DEFAULT_CODES[self]

    @property
    def retryable_by_default(self) -> bool:
        return self is ErrorCategory.DEPENDENCY


_DEFAULT_CODES = {
    ErrorCategory.VALIDATION: codes.VALIDATION_ERROR,
    ErrorCategory.NOT_FOUND: codes.NOT_FOUND,
    ErrorCategory.CONFLICT: codes.CONFLICT,
    ErrorCategory.PRECONDITION: codes.PRECONDITION_FAILED,
    ErrorCategory.DEPENDENCY: codes.DEPENDENCY_FAILURE,
    ErrorCategory.INTERNAL: codes.INTERNAL_ERROR,
}


@dataclass(frozen=True)
class ErrorDetail:
    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def to_output(self) -> dict[str, Any]:
        """Return a JSON-ready mapping for async operation outputs."""
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "metadata": dict(self.metadata),
        }
