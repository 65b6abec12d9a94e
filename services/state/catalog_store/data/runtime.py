"""Catalog Store-owned relational runtime wiring."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from packages.catalog_shared.config import CatalogSettings
from resources.substrates.postgres import (
    create_postgres_engine,
    ping,
    read_connection,
    transactional_connection,
)
from resources.substrates.postgres.config import resolve_postgres_settings
from services.state.catalog_store.config import (
    CatalogStoreSettings,
    resolve_catalog_store_settings,
)
from services.state.catalog_store.data.async_operations import AsyncOperationPgModel
from services.state.catalog_store.data.base import QueryExecutor
from services.state.catalog_store.data.collections import CollectionPgModel
from services.state.catalog_store.data.executions import ExecutionPgModel
from services.state.catalog_store.data.files import FilePgModel
from services.state.catalog_store.data.granules import GranulePgModel
from services.state.catalog_store.data.granules_executions import (
    GranulesExecutionsPgModel,
)
from services.state.catalog_store.data.providers import ProviderPgModel
from services.state.catalog_store.data.query_search_client import QuerySearchClient
from services.state.catalog_store.data.schema import metadata
from services.state.catalog_store.domain import HealthStatus


@dataclass(frozen=True)
class CatalogPostgresRuntime:
    """Engine handle plus one accessor per catalog table."""

    engine: AsyncEngine
    settings: CatalogStoreSettings
    health_timeout_seconds: float
    collections: CollectionPgModel
    providers: ProviderPgModel
    async_operations: AsyncOperationPgModel
    executions: ExecutionPgModel
    granules: GranulePgModel
    granules_executions: GranulesExecutionsPgModel
    files: FilePgModel

    @classmethod
    def from_settings(cls, settings: CatalogSettings) -> "CatalogPostgresRuntime":
        """Build the runtime from typed application settings."""
        postgres_config = resolve_postgres_settings(settings)
        return cls.from_engine(
            create_postgres_engine(postgres_config),
            settings=resolve_catalog_store_settings(settings),
            health_timeout_seconds=postgres_config.health_timeout_seconds,
        )

    @classmethod
    def from_engine(
        cls,
        engine: AsyncEngine,
        *,
        settings: CatalogStoreSettings | None = None,
        health_timeout_seconds: float = 1.0,
    ) -> "CatalogPostgresRuntime":
        settings = settings or CatalogStoreSettings()
        return cls(
            engine=engine,
            settings=settings,
            health_timeout_seconds=health_timeout_seconds,
            collections=CollectionPgModel(),
            providers=ProviderPgModel(),
            async_operations=AsyncOperationPgModel(),
            executions=ExecutionPgModel(),
            granules=GranulePgModel(
                duplicate_running_policy=settings.duplicate_running_policy
            ),
            granules_executions=GranulesExecutionsPgModel(),
            files=FilePgModel(),
        )

    def transaction(self) -> AbstractAsyncContextManager[AsyncConnection]:
        """Open a connection in a transaction that commits unless the block raises."""
        return transactional_connection(self.engine)

    def connect(self) -> AbstractAsyncContextManager[AsyncConnection]:
        """Open a connection for reads; nothing done on it is committed."""
        return read_connection(self.engine)

    def search_client(
        self, conn: QueryExecutor, query: Select[Any], *, limit: int | None = None
    ) -> QuerySearchClient:
        return QuerySearchClient(
            conn, query, limit=self.settings.search_batch_size if limit is None else limit
        )

    async def is_healthy(self) -> bool:
        """Return ``True`` when the backing store answers a probe in time."""
        return await ping(self.engine, timeout_seconds=self.health_timeout_seconds)

    async def health(self) -> HealthStatus:
        substrate_ready = await self.is_healthy()
        return HealthStatus(
            service_ready=True,
            substrate_ready=substrate_ready,
            detail="ok" if substrate_ready else "relational store unreachable",
        )

    async def create_schema(self) -> None:
        """Create every catalog table. Production schemas are managed externally."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
