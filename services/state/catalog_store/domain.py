"""Domain contracts for Catalog Store records.

Each entity has an input shape, which omits store-generated fields, and a
persisted record shape, which requires the surrogate ``cumulus_id`` and the
``created_at``/``updated_at`` timestamps.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class GranuleStatus(str, Enum):
    """Granule processing status."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not GranuleStatus.RUNNING


class ExecutionStatus(str, Enum):
    """Workflow execution status."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class AsyncOperationStatus(str, Enum):
    """Background task status."""

    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    RUNNER_FAILED = "RUNNER_FAILED"
    TASK_FAILED = "TASK_FAILED"


class AsyncOperationType(str, Enum):
    """Kinds of long-running background task."""

    BULK_GRANULES = "Bulk Granules"
    BULK_GRANULE_DELETE = "Bulk Granule Delete"
    BULK_GRANULE_REINGEST = "Bulk Granule Reingest"
    DATA_MIGRATION = "Data Migration"
    ES_INDEX = "ES Index"
    KINESIS_REPLAY = "Kinesis Replay"
    RECONCILIATION_REPORT = "Reconciliation Report"


class _CatalogModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class _PersistedFields(_CatalogModel):
    """Store-generated fields every persisted record carries."""

    cumulus_id: int
    created_at: UtcDatetime
    updated_at: UtcDatetime


class UpdatedAtRange(_CatalogModel):
    """Inclusive ``updated_at`` bounds; either side may be omitted."""

    updated_at_from: UtcDatetime | None = None
    updated_at_to: UtcDatetime | None = None

    def bounds(self, *, now: datetime | None = None) -> tuple[datetime, datetime]:
        """Return concrete bounds, defaulting to epoch and the current time."""
        return (
            self.updated_at_from or EPOCH,
            self.updated_at_to or ensure_utc(now or utc_now()),
        )

    @property
    def is_bounded(self) -> bool:
        return self.updated_at_from is not None or self.updated_at_to is not None


class CollectionInput(_CatalogModel):
    """Collection definition as supplied by configuration ingestion."""

    name: str
    version: str
    sample_file_name: str
    granule_id_validation_regex: str
    granule_id_extraction_regex: str
    files: list[dict[str, Any]] = Field(default_factory=list)
    process: str | None = None
    url_path: str | None = None
    duplicate_handling: str | None = None
    report_to_ems: bool | None = None
    ignore_files_config_for_discovery: bool | None = None
    meta: dict[str, Any] | None = None
    tags: list[str] | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class CollectionRecord(_PersistedFields, CollectionInput):
    """Persisted collection, including its granule-id parsing rules."""

    @property
    def collection_id(self) -> str:
        return f"{self.name}___{self.version}"

    def extract_granule_id(self, file_name: str) -> str:
        """Return the granule id captured from ``file_name`` by the extraction regex."""
        match = re.search(self.granule_id_extraction_regex, file_name)
        if match is None:
            raise ValueError(
                f"file name {file_name!r} does not match extraction regex "
                f"{self.granule_id_extraction_regex!r} of collection {self.collection_id}"
            )
        if match.groups():
            return match.group(1)
        return match.group(0)

    def is_valid_granule_id(self, granule_id: str) -> bool:
        return re.fullmatch(self.granule_id_validation_regex, granule_id) is not None


class ProviderInput(_CatalogModel):
    """Provider connection definition."""

    name: str
    protocol: str = "http"
    host: str
    port: int | None = None
    username: str | None = Field(default=None, repr=False)
    password: str | None = Field(default=None, repr=False)
    global_connection_limit: int | None = None
    private_key: str | None = Field(default=None, repr=False)
    cm_key_id: str | None = None
    certificate_uri: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class ProviderRecord(_PersistedFields, ProviderInput):
    """Persisted provider."""


class AsyncOperationInput(_CatalogModel):
    """Background task registration."""

    id: str
    description: str
    operation_type: AsyncOperationType
    status: AsyncOperationStatus
    output: Any = None
    task_arn: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class AsyncOperationRecord(_PersistedFields, AsyncOperationInput):
    """Persisted background task."""


class ExecutionInput(_CatalogModel):
    """Workflow execution state reported by a workflow message."""

    arn: str
    status: ExecutionStatus
    workflow_name: str | None = None
    url: str | None = None
    async_operation_cumulus_id: int | None = None
    collection_cumulus_id: int | None = None
    parent_cumulus_id: int | None = None
    cumulus_version: str | None = None
    tasks: dict[str, Any] | None = None
    error: dict[str, Any] | None = None
    original_payload: dict[str, Any] | None = None
    final_payload: dict[str, Any] | None = None
    duration: float | None = None
    timestamp: UtcDatetime | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class ExecutionRecord(_PersistedFields, ExecutionInput):
    """Persisted workflow execution."""


class GranuleInput(_CatalogModel):
    """Granule state reported by a workflow message."""

    granule_id: str
    collection_cumulus_id: int
    status: GranuleStatus
    provider_cumulus_id: int | None = None
    published: bool | None = None
    cmr_link: str | None = None
    error: dict[str, Any] | None = None
    duration: float | None = None
    product_volume: int | None = None
    time_to_process: float | None = None
    time_to_archive: float | None = None
    processing_start_date_time: UtcDatetime | None = None
    processing_end_date_time: UtcDatetime | None = None
    beginning_date_time: UtcDatetime | None = None
    ending_date_time: UtcDatetime | None = None
    last_update_date_time: UtcDatetime | None = None
    production_date_time: UtcDatetime | None = None
    query_fields: dict[str, Any] | None = None
    timestamp: UtcDatetime | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class GranuleRecord(_PersistedFields, GranuleInput):
    """Persisted granule."""

    published: bool = False


class GranulesExecutionsRecord(_CatalogModel):
    """Join row linking one granule to one execution."""

    granule_cumulus_id: int
    execution_cumulus_id: int


class FileInput(_CatalogModel):
    """Object-store file belonging to a granule."""

    granule_cumulus_id: int
    bucket: str
    key: str
    file_name: str | None = None
    file_size: int | None = None
    checksum_type: str | None = None
    checksum_value: str | None = None
    source: str | None = None
    path: str | None = None
    type: str | None = None
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class FileRecord(_PersistedFields, FileInput):
    """Persisted file."""


class HealthStatus(_CatalogModel):
    """Catalog Store readiness payload."""

    service_ready: bool
    substrate_ready: bool
    detail: str
