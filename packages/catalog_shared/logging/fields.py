"""Canonical logging field names shared by catalog components."""

TIMESTAMP = "timestamp"
LEVEL = "level"
LOGGER = "logger"
MESSAGE = "message"
EXCEPTION = "exception"
EXCEPTION_TYPE = "exception_type"

# Service-level fields.
SERVICE = "service"
ENVIRONMENT = "environment"

# Catalog correlation fields.
ASYNC_OPERATION_ID = "async_operation_id"
OPERATION = "operation"
GRANULE_ID = "granule_id"
COLLECTION_CUMULUS_ID = "collection_cumulus_id"
EXECUTION_ARN = "execution_arn"
TABLE = "table"
EXECUTION_CUMULUS_ID = "execution_cumulus_id"
SKIP_REASON = "skip_reason"
