"""Readiness probe for the relational store."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def ping(engine: AsyncEngine, *, timeout_seconds: float = 1.0) -> bool:
    """Return True when the store answers ``SELECT 1`` within ``timeout_seconds``.

    The deadline covers checking out a connection as well as the query. On
    postgresql the statement timeout is also set server side.
    """
    try:
        await asyncio.wait_for(_probe(engine, timeout_seconds), timeout=timeout_seconds)
    except Exception as exc:
        logger.warning("relational store probe failed: %s", type(exc).__name__)
        return False
    return True


async def _probe(engine: AsyncEngine, timeout_seconds: float) -> None:
    async with engine.connect() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(
                text("SELECT set_config('statement_timeout', :timeout, false)"),
                {"timeout": f"{max(1, int(timeout_seconds * 1000))}ms"},
            )
        await conn.execute(text("SELECT 1"))
