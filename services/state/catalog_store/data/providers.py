"""Provider accessor."""

from __future__ import annotations

from services.state.catalog_store.data.base import BasePgModel, QueryExecutor
from services.state.catalog_store.data.schema import providers
from services.state.catalog_store.domain import ProviderInput, ProviderRecord


class ProviderPgModel(BasePgModel[ProviderInput, ProviderRecord]):
    def __init__(self) -> None:
        super().__init__(table=providers, record_model=ProviderRecord)

    async def upsert(self, conn: QueryExecutor, provider: ProviderInput) -> ProviderRecord:
        return await self._upsert_on(conn, provider, ("name",))
