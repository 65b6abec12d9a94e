"""Catalog Store data layer exports."""

from services.state.catalog_store.data.async_operations import AsyncOperationPgModel
from services.state.catalog_store.data.base import BasePgModel, QueryExecutor
from services.state.catalog_store.data.collections import (
    CollectionPgModel,
    construct_collection_id,
    deconstruct_collection_id,
)
from services.state.catalog_store.data.executions import ExecutionPgModel
from services.state.catalog_store.data.files import FilePgModel
from services.state.catalog_store.data.granules import GranulePgModel
from services.state.catalog_store.data.granules_executions import (
    GranulesExecutionsPgModel,
)
from services.state.catalog_store.data.providers import ProviderPgModel
from services.state.catalog_store.data.queries import get_files_and_granule_info_query
from services.state.catalog_store.data.query_search_client import QuerySearchClient
from services.state.catalog_store.data.runtime import CatalogPostgresRuntime
from services.state.catalog_store.data.schema import (
    async_operations,
    collections,
    executions,
    files,
    granules,
    granules_executions,
    metadata,
    providers,
)

__all__ = [
    "AsyncOperationPgModel",
    "BasePgModel",
    "CatalogPostgresRuntime",
    "CollectionPgModel",
    "ExecutionPgModel",
    "FilePgModel",
    "GranulePgModel",
    "GranulesExecutionsPgModel",
    "ProviderPgModel",
    "QueryExecutor",
    "QuerySearchClient",
    "async_operations",
    "collections",
    "construct_collection_id",
    "deconstruct_collection_id",
    "executions",
    "files",
    "get_files_and_granule_info_query",
    "granules",
    "granules_executions",
    "metadata",
    "providers",
]
