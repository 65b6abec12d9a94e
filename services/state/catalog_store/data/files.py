"""File accessor."""

from __future__ import annotations

from services.state.catalog_store.data.base import BasePgModel, QueryExecutor
from services.state.catalog_store.data.schema import files
from services.state.catalog_store.domain import FileInput, FileRecord


class FilePgModel(BasePgModel[FileInput, FileRecord]):
    def __init__(self) -> None:
        super().__init__(table=files, record_model=FileRecord)

    async def upsert(self, conn: QueryExecutor, file: FileInput) -> FileRecord:
        """Insert or replace the file stored at ``(bucket, key)``."""
        return await self._upsert_on(conn, file, ("bucket", "key"))
