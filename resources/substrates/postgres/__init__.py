"""Shared relational-store substrate primitives for the catalog."""

from resources.substrates.postgres.config import resolve_postgres_settings
from resources.substrates.postgres.engine import create_postgres_engine
from resources.substrates.postgres.errors import normalize_postgres_error
from resources.substrates.postgres.health import ping
from resources.substrates.postgres.session import (
    read_connection,
    transactional_connection,
)

__all__ = [
    "create_postgres_engine",
    "normalize_postgres_error",
    "ping",
    "read_connection",
    "resolve_postgres_settings",
    "transactional_connection",
]
