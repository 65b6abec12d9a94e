"""Component identity for Catalog Store."""

from __future__ import annotations

SERVICE_COMPONENT_ID = "service_catalog_store"
