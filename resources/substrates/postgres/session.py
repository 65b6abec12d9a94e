"""Connection lifecycle helpers for the relational store.

Every data-layer operation takes an ``AsyncConnection``. These helpers are how
callers obtain one: either inside a transaction that commits on success and
rolls back on any exception, or as a plain connection for reads.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine


@asynccontextmanager
async def transactional_connection(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    """Yield a connection inside a transaction with commit/rollback semantics."""
    async with engine.connect() as conn:
        transaction = await conn.begin()
        try:
            yield conn
        except BaseException:
            await transaction.rollback()
            raise
        await transaction.commit()


@asynccontextmanager
async def read_connection(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    """Yield a connection whose implicit transaction is rolled back on exit."""
    async with engine.connect() as conn:
        yield conn
