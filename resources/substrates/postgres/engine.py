"""Async SQLAlchemy engine construction for the relational store."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from packages.catalog_shared.config import PostgresSettings

logger = logging.getLogger(__name__)


def create_postgres_engine(config: PostgresSettings) -> AsyncEngine:
    """Construct a configured async engine.

    Pool and connect arguments are only passed for the postgresql backend. Any
    other backend (sqlite in tests) gets the dialect defaults, with foreign key
    enforcement switched on for every sqlite connection.
    """
    config.validate()
    url = make_url(config.url)
    backend = url.get_backend_name()

    kwargs: dict[str, Any] = {"pool_pre_ping": config.pool_pre_ping}
    if backend == "postgresql":
        kwargs.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout_seconds,
            connect_args={
                "timeout": config.connect_timeout_seconds,
                "ssl": config.sslmode,
            },
        )
    if config.schema_name:
        kwargs["execution_options"] = {
            "schema_translate_map": {None: config.schema_name}
        }

    logger.info(
        "creating relational store engine backend=%s host=%s database=%s",
        backend,
        url.host,
        url.database,
    )
    engine = create_async_engine(url, **kwargs)
    if backend == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """Turn on sqlite foreign key enforcement for a new DBAPI connection."""
    del connection_record
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
