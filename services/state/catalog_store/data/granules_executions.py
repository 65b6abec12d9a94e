"""Granule/execution join accessor."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from sqlalchemy import select

from services.state.catalog_store.data.base import (
    BasePgModel,
    QueryExecutor,
    dialect_insert,
)
from services.state.catalog_store.data.schema import executions, granules_executions
from services.state.catalog_store.domain import GranulesExecutionsRecord


class GranulesExecutionsPgModel(
    BasePgModel[GranulesExecutionsRecord, GranulesExecutionsRecord]
):
    """Join rows have no surrogate id; the pair is the identity."""

    def __init__(self) -> None:
        super().__init__(table=granules_executions, record_model=GranulesExecutionsRecord)

    async def upsert(
        self,
        conn: QueryExecutor,
        link: GranulesExecutionsRecord | Mapping[str, Any],
    ) -> bool:
        """Create the link if missing. Return True when a row was inserted."""
        statement = (
            dialect_insert(conn)(self.table)
            .values(self._values(link))
            .on_conflict_do_nothing(
                index_elements=["granule_cumulus_id", "execution_cumulus_id"]
            )
        )
        result = await conn.execute(statement)
        return result.rowcount == 1

    async def search_execution_cumulus_ids(
        self, conn: QueryExecutor, granule_cumulus_ids: Sequence[int]
    ) -> list[int]:
        """Return distinct executions linked to any of the granules."""
        if not granule_cumulus_ids:
            return []
        statement = (
            select(self.table.c.execution_cumulus_id)
            .where(self.table.c.granule_cumulus_id.in_(list(granule_cumulus_ids)))
            .distinct()
            .order_by(self.table.c.execution_cumulus_id)
        )
        return list((await conn.execute(statement)).scalars())

    async def search_granule_cumulus_ids(
        self, conn: QueryExecutor, execution_cumulus_ids: Sequence[int]
    ) -> list[int]:
        """Return distinct granules linked to any of the executions."""
        if not execution_cumulus_ids:
            return []
        statement = (
            select(self.table.c.granule_cumulus_id)
            .where(self.table.c.execution_cumulus_id.in_(list(execution_cumulus_ids)))
            .distinct()
            .order_by(self.table.c.granule_cumulus_id)
        )
        return list((await conn.execute(statement)).scalars())

    async def latest_execution_cumulus_id(
        self, conn: QueryExecutor, granule_cumulus_id: int
    ) -> int | None:
        """Return the most recently created execution linked to the granule."""
        statement = (
            select(self.table.c.execution_cumulus_id)
            .join(executions, executions.c.cumulus_id == self.table.c.execution_cumulus_id)
            .where(self.table.c.granule_cumulus_id == granule_cumulus_id)
            .order_by(executions.c.created_at.desc(), executions.c.cumulus_id.desc())
            .limit(1)
        )
        return (await conn.execute(statement)).scalar_one_or_none()
