"""Granule accessor: natural-key lookups, guarded upsert, and ordered delete."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import select, update

from packages.catalog_shared.logging import fields, log_context
from services.state.catalog_store.data.base import (
    BasePgModel,
    Filter,
    QueryExecutor,
    dialect_insert,
)
from services.state.catalog_store.data.files import FilePgModel
from services.state.catalog_store.data.granules_executions import (
    GranulesExecutionsPgModel,
)
from services.state.catalog_store.data.schema import granules
from services.state.catalog_store.domain import GranuleInput, GranuleRecord
from services.state.catalog_store.errors import ConflictingWrite, DeletePublishedGranule
from services.state.catalog_store.granule_upsert import (
    DuplicateRunningPolicy,
    GranuleUpsertResult,
    SkipReason,
    UpsertAction,
    plan_granule_write,
)

logger = logging.getLogger(__name__)


class GranulePgModel(BasePgModel[GranuleInput, GranuleRecord]):
    def __init__(
        self,
        *,
        duplicate_running_policy: DuplicateRunningPolicy = DuplicateRunningPolicy.SKIP,
    ) -> None:
        super().__init__(table=granules, record_model=GranuleRecord)
        self.duplicate_running_policy = duplicate_running_policy
        self.granules_executions = GranulesExecutionsPgModel()
        self.files = FilePgModel()

    async def get_cumulus_id_by_natural_key(
        self, conn: QueryExecutor, *, granule_id: str, collection_cumulus_id: int
    ) -> int:
        return await self.get_record_cumulus_id(
            conn,
            {"granule_id": granule_id, "collection_cumulus_id": collection_cumulus_id},
        )

    async def exists_by_natural_key(
        self, conn: QueryExecutor, *, granule_id: str, collection_cumulus_id: int
    ) -> bool:
        return await self.exists(
            conn,
            {"granule_id": granule_id, "collection_cumulus_id": collection_cumulus_id},
        )

    async def upsert(
        self,
        conn: QueryExecutor,
        granule: GranuleInput,
        *,
        execution_cumulus_id: int | None = None,
    ) -> GranuleUpsertResult:
        """Write ``granule`` under the status rules in ``granule_upsert``.

        ``execution_cumulus_id`` is the execution that reported this state. It
        is linked to the granule whenever the write is an insert or update.
        Rejected writes are reported as ``skipped`` rather than raised.
        """
        existing = await self._find_for_update(conn, granule)
        if existing is None:
            inserted = await self._insert_if_absent(conn, granule)
            if inserted is not None:
                await self._link_execution(conn, inserted, execution_cumulus_id)
                return GranuleUpsertResult(action=UpsertAction.INSERTED, record=inserted)
            existing = await self.get(conn, self._natural_key(granule))

        same_execution = execution_cumulus_id is not None and (
            await self.granules_executions.latest_execution_cumulus_id(
                conn, existing.cumulus_id
            )
            == execution_cumulus_id
        )

        plan = plan_granule_write(
            existing,
            granule,
            same_execution=same_execution,
            duplicate_running_policy=self.duplicate_running_policy,
        )
        if plan.action is UpsertAction.SKIPPED:
            return self._skipped(existing, execution_cumulus_id, plan.reason)

        try:
            record = await self._guarded_update(conn, existing, granule, plan.values)
        except ConflictingWrite:
            return self._skipped(existing, execution_cumulus_id, SkipReason.STALE_WRITE)

        if plan.action is UpsertAction.UPDATED:
            await self._link_execution(conn, record, execution_cumulus_id)
        return GranuleUpsertResult(action=plan.action, record=record)

    async def delete(self, conn: QueryExecutor, params: Filter) -> int:
        """Delete matching granules with their execution links and files.

        Nothing is removed if any matching granule is published. Atomicity
        across the three tables comes from the caller's transaction.
        """
        result = await conn.execute(
            select(
                self.table.c.cumulus_id,
                self.table.c.granule_id,
                self.table.c.published,
            ).where(*self._where(params))
        )
        matches = result.mappings().all()
        if not matches:
            return 0
        for match in matches:
            if match["published"]:
                raise DeletePublishedGranule(match["granule_id"])

        cumulus_ids = [match["cumulus_id"] for match in matches]
        await self.granules_executions.delete_in(conn, "granule_cumulus_id", cumulus_ids)
        await self.files.delete_in(conn, "granule_cumulus_id", cumulus_ids)
        return await self.delete_in(conn, "cumulus_id", cumulus_ids)

    @staticmethod
    def _natural_key(granule: GranuleInput) -> dict[str, Any]:
        return {
            "granule_id": granule.granule_id,
            "collection_cumulus_id": granule.collection_cumulus_id,
        }

    async def _find_for_update(
        self, conn: QueryExecutor, granule: GranuleInput
    ) -> GranuleRecord | None:
        statement = (
            select(self.table)
            .where(*self._where(self._natural_key(granule)))
            .with_for_update()
        )
        row = (await conn.execute(statement)).mappings().first()
        return None if row is None else self._to_record(row)

    async def _insert_if_absent(
        self, conn: QueryExecutor, granule: GranuleInput
    ) -> GranuleRecord | None:
        statement = (
            dialect_insert(conn)(self.table)
            .values(self._values(granule))
            .on_conflict_do_nothing(index_elements=["granule_id", "collection_cumulus_id"])
            .returning(*self.table.c)
        )
        row = (await conn.execute(statement)).mappings().first()
        return None if row is None else self._to_record(row)

    async def _guarded_update(
        self,
        conn: QueryExecutor,
        existing: GranuleRecord,
        granule: GranuleInput,
        values: Mapping[str, Any],
    ) -> GranuleRecord:
        """Update the row only if its ``created_at`` has not moved past ours."""
        statement = update(self.table).where(self.table.c.cumulus_id == existing.cumulus_id)
        if granule.created_at is not None:
            statement = statement.where(self.table.c.created_at <= granule.created_at)
        statement = statement.values(dict(values)).returning(*self.table.c)
        row = (await conn.execute(statement)).mappings().first()
        if row is None:
            raise ConflictingWrite(
                f"granule {granule.granule_id} changed before the update was applied"
            )
        return self._to_record(row)

    async def _link_execution(
        self,
        conn: QueryExecutor,
        record: GranuleRecord,
        execution_cumulus_id: int | None,
    ) -> None:
        if execution_cumulus_id is None:
            return
        await self.granules_executions.upsert(
            conn,
            {
                "granule_cumulus_id": record.cumulus_id,
                "execution_cumulus_id": execution_cumulus_id,
            },
        )

    def _skipped(
        self,
        existing: GranuleRecord,
        execution_cumulus_id: int | None,
        reason: SkipReason | None,
    ) -> GranuleUpsertResult:
        with log_context(
            {
                fields.GRANULE_ID: existing.granule_id,
                fields.COLLECTION_CUMULUS_ID: existing.collection_cumulus_id,
                fields.EXECUTION_CUMULUS_ID: execution_cumulus_id,
                fields.SKIP_REASON: reason.value if reason else None,
            }
        ):
            logger.info("Did not process delayed event for granule")
        return GranuleUpsertResult(
            action=UpsertAction.SKIPPED, record=existing, reason=reason
        )
