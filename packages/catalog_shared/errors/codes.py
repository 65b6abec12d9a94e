"""Shared error code constants.

Codes are stable machine-readable identifiers. Service-specific codes should
extend this set in the owning service module.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
UNKNOWN_COLUMN = "UNKNOWN_COLUMN"

# Not found
NOT_FOUND = "NOT_FOUND"
RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

# Conflict
CONFLICT = "CONFLICT"
CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
CONFLICTING_WRITE = "CONFLICTING_WRITE"

# Precondition
PRECONDITION_FAILED = "PRECONDITION_FAILED"

# Dependency / relational store
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"
DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
