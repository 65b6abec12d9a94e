"""Table models for catalog collections, granules, executions, and files."""

from __future__ import annotations

from enum import Enum as PyEnum

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    UniqueConstraint,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from services.state.catalog_store.domain import (
    AsyncOperationStatus,
    AsyncOperationType,
    ExecutionStatus,
    GranuleStatus,
)

metadata = MetaData()

SurrogateId = BigInteger().with_variant(Integer(), "sqlite")
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _status_enum(enum_cls: type[PyEnum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        length=64,
        values_callable=_enum_values,
    )


def _cumulus_id_column() -> Column:
    return Column("cumulus_id", SurrogateId, primary_key=True, autoincrement=True)


def _timestamp_columns() -> tuple[Column, Column]:
    return (
        Column(
            "created_at",
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
        Column(
            "updated_at",
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
        ),
    )


collections = Table(
    "collections",
    metadata,
    _cumulus_id_column(),
    Column("name", String(255), nullable=False),
    Column("version", String(255), nullable=False),
    Column("sample_file_name", Text, nullable=False),
    Column("granule_id_validation_regex", Text, nullable=False),
    Column("granule_id_extraction_regex", Text, nullable=False),
    Column("files", JsonDocument, nullable=False),
    Column("process", Text),
    Column("url_path", Text),
    Column("duplicate_handling", String(32)),
    Column("report_to_ems", Boolean),
    Column("ignore_files_config_for_discovery", Boolean),
    Column("meta", JsonDocument),
    Column("tags", JsonDocument),
    *_timestamp_columns(),
    UniqueConstraint("name", "version", name="collections_name_version_unique"),
)

providers = Table(
    "providers",
    metadata,
    _cumulus_id_column(),
    Column("name", String(255), nullable=False, unique=True),
    Column("protocol", String(16), nullable=False, server_default="http"),
    Column("host", Text, nullable=False),
    Column("port", Integer),
    Column("username", Text),
    Column("password", Text),
    Column("global_connection_limit", Integer),
    Column("private_key", Text),
    Column("cm_key_id", Text),
    Column("certificate_uri", Text),
    *_timestamp_columns(),
)

async_operations = Table(
    "async_operations",
    metadata,
    _cumulus_id_column(),
    Column("id", String(64), nullable=False, unique=True),
    Column("description", Text, nullable=False),
    Column(
        "operation_type",
        _status_enum(AsyncOperationType, "async_operation_type"),
        nullable=False,
    ),
    Column(
        "status",
        _status_enum(AsyncOperationStatus, "async_operation_status"),
        nullable=False,
    ),
    Column("output", JsonDocument),
    Column("task_arn", Text),
    *_timestamp_columns(),
)

executions = Table(
    "executions",
    metadata,
    _cumulus_id_column(),
    Column("arn", Text, nullable=False, unique=True),
    Column("status", _status_enum(ExecutionStatus, "execution_status"), nullable=False),
    Column("workflow_name", Text),
    Column("url", Text),
    Column(
        "async_operation_cumulus_id",
        SurrogateId,
        ForeignKey("async_operations.cumulus_id"),
    ),
    Column("collection_cumulus_id", SurrogateId, ForeignKey("collections.cumulus_id")),
    Column("parent_cumulus_id", SurrogateId, ForeignKey("executions.cumulus_id")),
    Column("cumulus_version", String(64)),
    Column("tasks", JsonDocument),
    Column("error", JsonDocument),
    Column("original_payload", JsonDocument),
    Column("final_payload", JsonDocument),
    Column("duration", Float),
    Column("timestamp", DateTime(timezone=True)),
    *_timestamp_columns(),
)

granules = Table(
    "granules",
    metadata,
    _cumulus_id_column(),
    Column("granule_id", Text, nullable=False),
    Column(
        "collection_cumulus_id",
        SurrogateId,
        ForeignKey("collections.cumulus_id"),
        nullable=False,
    ),
    Column("status", _status_enum(GranuleStatus, "granule_status"), nullable=False),
    Column("provider_cumulus_id", SurrogateId, ForeignKey("providers.cumulus_id")),
    Column("published", Boolean, nullable=False, default=False, server_default=false()),
    Column("cmr_link", Text),
    Column("error", JsonDocument),
    Column("duration", Float),
    Column("product_volume", BigInteger),
    Column("time_to_process", Float),
    Column("time_to_archive", Float),
    Column("processing_start_date_time", DateTime(timezone=True)),
    Column("processing_end_date_time", DateTime(timezone=True)),
    Column("beginning_date_time", DateTime(timezone=True)),
    Column("ending_date_time", DateTime(timezone=True)),
    Column("last_update_date_time", DateTime(timezone=True)),
    Column("production_date_time", DateTime(timezone=True)),
    Column("query_fields", JsonDocument),
    Column("timestamp", DateTime(timezone=True)),
    *_timestamp_columns(),
    UniqueConstraint(
        "granule_id",
        "collection_cumulus_id",
        name="granules_granule_id_collection_cumulus_id_unique",
    ),
)

granules_executions = Table(
    "granules_executions",
    metadata,
    Column(
        "granule_cumulus_id",
        SurrogateId,
        ForeignKey("granules.cumulus_id"),
        nullable=False,
    ),
    Column(
        "execution_cumulus_id",
        SurrogateId,
        ForeignKey("executions.cumulus_id"),
        nullable=False,
    ),
    PrimaryKeyConstraint(
        "granule_cumulus_id", "execution_cumulus_id", name="granules_executions_pkey"
    ),
)

files = Table(
    "files",
    metadata,
    _cumulus_id_column(),
    Column(
        "granule_cumulus_id",
        SurrogateId,
        ForeignKey("granules.cumulus_id"),
        nullable=False,
    ),
    Column("bucket", Text, nullable=False),
    Column("key", Text, nullable=False),
    Column("file_name", Text),
    Column("file_size", BigInteger),
    Column("checksum_type", Text),
    Column("checksum_value", Text),
    Column("source", Text),
    Column("path", Text),
    Column("type", Text),
    *_timestamp_columns(),
    UniqueConstraint("bucket", "key", name="files_bucket_key_unique"),
)
