"""Bulk granule operations built on the Catalog Store accessors.

A bulk request names granules either explicitly or through a search-index
query. Every granule is processed independently: one failure never stops the
others, and all failures are raised together once every item has run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence, TypeVar

from packages.catalog_shared.logging import fields, log_context
from services.state.catalog_store.data.collections import construct_collection_id
from services.state.catalog_store.data.runtime import CatalogPostgresRuntime
from services.state.catalog_store.errors import BulkOperationError
from services.state.catalog_store.mirror import IndexMirror, RecordKind, mirror_delete

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 10


@dataclass(frozen=True)
class BulkGranulesPayload:
    """Granule selection for a bulk request: explicit ids or an index query."""

    ids: Sequence[str] = ()
    query: Mapping[str, Any] | None = None
    index: str | None = None


@dataclass(frozen=True)
class IndexSearchPage:
    granule_ids: Sequence[str]
    total: int
    scroll_id: str | None = None


class IndexSearchClient(Protocol):
    """Paged granule search against the secondary index."""

    async def search(
        self, *, index: str, query: Mapping[str, Any], size: int
    ) -> IndexSearchPage: ...

    async def scroll(self, scroll_id: str | None) -> IndexSearchPage: ...


@dataclass(frozen=True)
class BulkDeleteResult:
    deleted_granules: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _ItemFailure:
    granule_id: str
    error: Exception


def unique_granule_ids(granule_ids: Sequence[str]) -> list[str]:
    """Drop repeated ids, keeping the first occurrence of each."""
    return list(dict.fromkeys(granule_ids))


async def get_granule_ids_for_payload(
    payload: BulkGranulesPayload,
    index_search: IndexSearchClient | None = None,
    *,
    page_size: int = 500,
) -> list[str]:
    """Resolve a bulk payload to a de-duplicated list of granule ids."""
    if payload.ids:
        return unique_granule_ids(payload.ids)
    if payload.query is None or not payload.index:
        raise ValueError("bulk granule payload requires ids, or a query and index")
    if index_search is None:
        raise ValueError("an index search client is required for query payloads")

    page = await index_search.search(
        index=payload.index, query=payload.query, size=page_size
    )
    collected = list(page.granule_ids)
    while len(collected) < page.total:
        page = await index_search.scroll(page.scroll_id)
        if not page.granule_ids:
            break
        collected.extend(page.granule_ids)
    return unique_granule_ids(collected)


async def run_bulk_granule_operation(
    granule_ids: Sequence[str],
    operation: Callable[[str], Awaitable[T]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> list[T]:
    """Apply ``operation`` to every granule id, collecting failures.

    Raises ``BulkOperationError`` carrying every failure and the successful
    results when any item failed.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    semaphore = asyncio.Semaphore(concurrency)

    async def _run(granule_id: str) -> T | _ItemFailure:
        async with semaphore:
            try:
                return await operation(granule_id)
            except Exception as exc:
                with log_context({fields.GRANULE_ID: granule_id}):
                    logger.error("Granule failed bulk operation", exc_info=True)
                return _ItemFailure(granule_id=granule_id, error=exc)

    outcomes = await asyncio.gather(*(_run(granule_id) for granule_id in granule_ids))
    failures = [outcome.error for outcome in outcomes if isinstance(outcome, _ItemFailure)]
    results = [outcome for outcome in outcomes if not isinstance(outcome, _ItemFailure)]
    if failures:
        raise BulkOperationError(failures, results)
    return results


async def bulk_granule_delete(
    runtime: CatalogPostgresRuntime,
    payload: BulkGranulesPayload,
    *,
    index_search: IndexSearchClient | None = None,
    mirror: IndexMirror | None = None,
    async_operation_id: str | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> BulkDeleteResult:
    """Delete every granule named by ``payload`` across all its collections.

    Each granule id is removed in its own transaction. Ids that no longer
    exist count as deleted; published granules fail and are reported in the
    aggregate error.
    """
    with log_context(
        {
            fields.OPERATION: "bulk_granule_delete",
            fields.ASYNC_OPERATION_ID: async_operation_id,
        }
    ):
        granule_ids = await get_granule_ids_for_payload(
            payload, index_search, page_size=runtime.settings.bulk_search_page_size
        )
        logger.info("Deleting %d granules", len(granule_ids))

        async def _delete(granule_id: str) -> str:
            async with runtime.transaction() as conn:
                records = await runtime.granules.search(conn, {"granule_id": granule_id})
                collection_ids = []
                for record in records:
                    collection = await runtime.collections.get(
                        conn, {"cumulus_id": record.collection_cumulus_id}
                    )
                    await runtime.granules.delete(conn, {"cumulus_id": record.cumulus_id})
                    collection_ids.append(
                        construct_collection_id(collection.name, collection.version)
                    )
            for collection_id in collection_ids:
                await mirror_delete(
                    mirror,
                    RecordKind.GRANULE,
                    {"granule_id": granule_id, "collection_id": collection_id},
                )
            return granule_id

        deleted = await run_bulk_granule_operation(
            granule_ids, _delete, concurrency=concurrency
        )
    return BulkDeleteResult(deleted_granules=deleted)
