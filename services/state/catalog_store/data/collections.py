"""Collection accessor and collection-id helpers."""

from __future__ import annotations

from services.state.catalog_store.data.base import BasePgModel, QueryExecutor
from services.state.catalog_store.data.schema import collections
from services.state.catalog_store.domain import CollectionInput, CollectionRecord

COLLECTION_ID_SEPARATOR = "___"


def construct_collection_id(name: str, version: str) -> str:
    """Return the external ``name___version`` collection identifier."""
    return f"{name}{COLLECTION_ID_SEPARATOR}{version}"


def deconstruct_collection_id(collection_id: str) -> tuple[str, str]:
    """Split a ``name___version`` identifier into its name and version."""
    name, separator, version = collection_id.rpartition(COLLECTION_ID_SEPARATOR)
    if not separator or not name or not version:
        raise ValueError(f"invalid collection id: {collection_id!r}")
    return name, version


class CollectionPgModel(BasePgModel[CollectionInput, CollectionRecord]):
    def __init__(self) -> None:
        super().__init__(table=collections, record_model=CollectionRecord)

    async def get_by_collection_id(
        self, conn: QueryExecutor, collection_id: str
    ) -> CollectionRecord:
        name, version = deconstruct_collection_id(collection_id)
        return await self.get(conn, {"name": name, "version": version})

    async def upsert(
        self, conn: QueryExecutor, collection: CollectionInput
    ) -> CollectionRecord:
        """Insert or replace the collection sharing ``(name, version)``."""
        return await self._upsert_on(conn, collection, ("name", "version"))
