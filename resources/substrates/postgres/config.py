"""Resolution of relational-store settings from application settings."""

from __future__ import annotations

from packages.catalog_shared.config import CatalogSettings, PostgresSettings


def resolve_postgres_settings(settings: CatalogSettings) -> PostgresSettings:
    """Return validated store settings from the root settings snapshot."""
    postgres = settings.postgres
    postgres.validate()
    return postgres
