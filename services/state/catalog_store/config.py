"""Pydantic settings for Catalog Store behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from packages.catalog_shared.config import CatalogSettings, resolve_component_settings
from services.state.catalog_store.component import SERVICE_COMPONENT_ID
from services.state.catalog_store.granule_upsert import DuplicateRunningPolicy


class CatalogStoreSettings(BaseModel):
    """Catalog Store paging and write-policy settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    search_batch_size: int = Field(default=100, gt=0)
    duplicate_running_policy: DuplicateRunningPolicy = DuplicateRunningPolicy.SKIP
    bulk_search_page_size: int = Field(default=500, gt=0)


def resolve_catalog_store_settings(settings: CatalogSettings) -> CatalogStoreSettings:
    """Resolve store settings from ``components.service.catalog_store``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=CatalogStoreSettings,
    )
