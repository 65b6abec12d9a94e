"""Batch-prefetching cursor over a sorted query."""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import Select

from services.state.catalog_store.data.base import QueryExecutor

DEFAULT_SEARCH_BATCH_SIZE = 100


class QuerySearchClient:
    """Lazily stream the rows of ``query`` in batches of ``limit``.

    The query must already carry its filters and a deterministic sort; the
    client only adds ``LIMIT``/``OFFSET``. A batch is fetched only when the
    buffer is empty, and the offset advances by ``limit`` per fetch, so rows
    are neither skipped nor repeated however ``peek`` and ``shift`` interleave.
    Once a fetch comes back empty the client stays exhausted and never queries
    again.

    Instances hold cursor state and are meant for one sequential consumer.
    """

    def __init__(
        self,
        conn: QueryExecutor,
        query: Select[Any],
        *,
        limit: int = DEFAULT_SEARCH_BATCH_SIZE,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self._conn = conn
        self._query = query
        self._limit = limit
        self._offset = 0
        self._records: deque[dict[str, Any]] = deque()
        self._exhausted = False

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def exhausted(self) -> bool:
        return self._exhausted and not self._records

    async def peek(self) -> dict[str, Any] | None:
        """Return the next record without consuming it, or ``None`` when done."""
        await self._fill_if_empty()
        if not self._records:
            return None
        return self._records[0]

    async def shift(self) -> dict[str, Any] | None:
        """Consume and return the next record, or ``None`` when done."""
        await self._fill_if_empty()
        if not self._records:
            return None
        return self._records.popleft()

    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            record = await self.shift()
            if record is None:
                return
            yield record

    async def _fill_if_empty(self) -> None:
        if self._records or self._exhausted:
            return
        statement = self._query.offset(self._offset).limit(self._limit)
        result = await self._conn.execute(statement)
        self._records = deque(dict(row) for row in result.mappings())
        self._offset += self._limit
        if not self._records:
            self._exhausted = True
