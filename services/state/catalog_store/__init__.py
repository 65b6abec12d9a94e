"""Catalog Store package exports."""

from services.state.catalog_store.component import SERVICE_COMPONENT_ID
from services.state.catalog_store.config import (
    CatalogStoreSettings,
    resolve_catalog_store_settings,
)
from services.state.catalog_store.data.runtime import CatalogPostgresRuntime
from services.state.catalog_store.domain import (
    AsyncOperationStatus,
    AsyncOperationType,
    ExecutionStatus,
    GranuleStatus,
)
from services.state.catalog_store.errors import (
    BulkOperationError,
    ConflictingWrite,
    ConstraintViolation,
    DeletePublishedGranule,
    PreconditionFailed,
    RecordDoesNotExist,
    TransportError,
    catalog_exception_to_error,
)
from services.state.catalog_store.granule_upsert import (
    DuplicateRunningPolicy,
    GranuleUpsertResult,
    UpsertAction,
)

__all__ = [
    "AsyncOperationStatus",
    "AsyncOperationType",
    "BulkOperationError",
    "CatalogPostgresRuntime",
    "CatalogStoreSettings",
    "ConflictingWrite",
    "ConstraintViolation",
    "DeletePublishedGranule",
    "DuplicateRunningPolicy",
    "ExecutionStatus",
    "GranuleStatus",
    "GranuleUpsertResult",
    "PreconditionFailed",
    "RecordDoesNotExist",
    "SERVICE_COMPONENT_ID",
    "TransportError",
    "UpsertAction",
    "catalog_exception_to_error",
    "resolve_catalog_store_settings",
]
