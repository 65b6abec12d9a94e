"""Best-effort replication of persisted records into the search index.

The relational store is the source of truth. Mirror failures are logged and
reported to the caller as ``False``; they never fail the store write that
preceded them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Protocol

from pydantic import BaseModel

from packages.catalog_shared.logging import fields, log_context

logger = logging.getLogger(__name__)


class RecordKind(str, Enum):
    ASYNC_OPERATION = "asyncOperation"
    COLLECTION = "collection"
    EXECUTION = "execution"
    GRANULE = "granule"
    PROVIDER = "provider"


class IndexMirror(Protocol):
    """Search-index writer consumed by the catalog."""

    async def upsert_record(self, kind: RecordKind, record: Mapping[str, Any]) -> None: ...

    async def delete_record(self, kind: RecordKind, key: Mapping[str, Any]) -> None: ...


async def mirror_upsert(
    mirror: IndexMirror | None, kind: RecordKind, record: BaseModel
) -> bool:
    """Replicate ``record``; return whether the index accepted it."""
    if mirror is None:
        return False
    try:
        await mirror.upsert_record(kind, record.model_dump(mode="json"))
    except Exception:
        with log_context({fields.TABLE: kind.value}):
            logger.error("Failed to mirror record to search index", exc_info=True)
        return False
    return True


async def mirror_delete(
    mirror: IndexMirror | None, kind: RecordKind, key: Mapping[str, Any]
) -> bool:
    """Remove ``key`` from the index; return whether the index accepted it."""
    if mirror is None:
        return False
    try:
        await mirror.delete_record(kind, dict(key))
    except Exception:
        with log_context({fields.TABLE: kind.value}):
            logger.error(
                "Failed to remove record %s from search index", dict(key), exc_info=True
            )
        return False
    return True
