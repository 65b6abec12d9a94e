"""Async operation accessor."""

from __future__ import annotations

from typing import Any

from services.state.catalog_store.data.base import BasePgModel, QueryExecutor
from services.state.catalog_store.data.schema import async_operations
from services.state.catalog_store.domain import (
    AsyncOperationInput,
    AsyncOperationRecord,
    AsyncOperationStatus,
)
from services.state.catalog_store.errors import RecordDoesNotExist


class AsyncOperationPgModel(BasePgModel[AsyncOperationInput, AsyncOperationRecord]):
    def __init__(self) -> None:
        super().__init__(table=async_operations, record_model=AsyncOperationRecord)

    async def update_status(
        self,
        conn: QueryExecutor,
        operation_id: str,
        status: AsyncOperationStatus,
        output: Any = None,
    ) -> AsyncOperationRecord:
        """Record a status change, and the task output when given."""
        patch: dict[str, Any] = {"status": status}
        if output is not None:
            patch["output"] = output
        rows = await self.update(
            conn, {"id": operation_id}, patch, returning=[c.name for c in self.table.c]
        )
        if not rows:
            raise RecordDoesNotExist(self.table_name, {"id": operation_id})
        return self._to_record(rows[0])
