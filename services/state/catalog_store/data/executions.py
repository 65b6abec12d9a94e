"""Execution accessor and execution write rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import select

from packages.catalog_shared.logging import fields, log_context
from services.state.catalog_store.data.base import (
    BasePgModel,
    Filter,
    QueryExecutor,
    dialect_insert,
)
from services.state.catalog_store.data.granules_executions import (
    GranulesExecutionsPgModel,
)
from services.state.catalog_store.data.schema import executions
from services.state.catalog_store.domain import (
    ExecutionInput,
    ExecutionRecord,
    ExecutionStatus,
    utc_now,
)
from services.state.catalog_store.granule_upsert import UpsertAction

logger = logging.getLogger(__name__)

# Written when a running message meets a running execution.
EXECUTION_RUNNING_MUTABLE_FIELDS: tuple[str, ...] = (
    "created_at",
    "updated_at",
    "timestamp",
    "original_payload",
)


@dataclass(frozen=True)
class ExecutionWritePlan:
    action: UpsertAction
    values: Mapping[str, Any] = field(default_factory=dict)


def plan_execution_write(
    existing: ExecutionRecord | None,
    incoming: ExecutionInput,
    *,
    now: datetime | None = None,
) -> ExecutionWritePlan:
    """Decide what an upsert of ``incoming`` may write over ``existing``.

    A running message never touches a completed or failed execution, and only
    refreshes the running allow-list of a running one. Terminal messages
    overwrite every supplied field.
    """
    values = incoming.model_dump(exclude_none=True)
    if existing is None:
        return ExecutionWritePlan(action=UpsertAction.INSERTED, values=values)

    values.pop("arn", None)
    if incoming.status is ExecutionStatus.RUNNING:
        if existing.status.is_terminal:
            return ExecutionWritePlan(action=UpsertAction.SKIPPED)
        values = {
            key: value
            for key, value in values.items()
            if key in EXECUTION_RUNNING_MUTABLE_FIELDS
        }
    values.setdefault("updated_at", now or utc_now())
    return ExecutionWritePlan(action=UpsertAction.UPDATED, values=values)


class ExecutionPgModel(BasePgModel[ExecutionInput, ExecutionRecord]):
    def __init__(self) -> None:
        super().__init__(table=executions, record_model=ExecutionRecord)
        self.granules_executions = GranulesExecutionsPgModel()

    async def upsert(
        self, conn: QueryExecutor, execution: ExecutionInput
    ) -> ExecutionRecord:
        """Write ``execution`` keyed by ``arn`` and return the persisted row."""
        existing = await self._find_for_update(conn, execution.arn)
        if existing is None:
            inserted = await self._insert_if_absent(conn, execution)
            if inserted is not None:
                return inserted
            existing = await self.get(conn, {"arn": execution.arn})

        plan = plan_execution_write(existing, execution)
        if plan.action is UpsertAction.SKIPPED:
            with log_context({fields.EXECUTION_ARN: execution.arn}):
                logger.info(
                    "Ignored running update for %s execution", existing.status.value
                )
            return existing

        rows = await self.update(
            conn,
            {"cumulus_id": existing.cumulus_id},
            plan.values,
            returning=[column.name for column in self.table.c],
        )
        return self._to_record(rows[0])

    async def delete(self, conn: QueryExecutor, params: Filter) -> int:
        """Delete matching executions after their granule links."""
        result = await conn.execute(
            select(self.table.c.cumulus_id).where(*self._where(params))
        )
        cumulus_ids = list(result.scalars())
        if not cumulus_ids:
            return 0
        await self.granules_executions.delete_in(
            conn, "execution_cumulus_id", cumulus_ids
        )
        return await self.delete_in(conn, "cumulus_id", cumulus_ids)

    async def _find_for_update(
        self, conn: QueryExecutor, arn: str
    ) -> ExecutionRecord | None:
        statement = (
            select(self.table).where(self.table.c.arn == arn).with_for_update()
        )
        row = (await conn.execute(statement)).mappings().first()
        return None if row is None else self._to_record(row)

    async def _insert_if_absent(
        self, conn: QueryExecutor, execution: ExecutionInput
    ) -> ExecutionRecord | None:
        statement = (
            dialect_insert(conn)(self.table)
            .values(self._values(execution))
            .on_conflict_do_nothing(index_elements=["arn"])
            .returning(*self.table.c)
        )
        row = (await conn.execute(statement)).mappings().first()
        return None if row is None else self._to_record(row)
