"""Shared fixtures for Catalog Store tests backed by an on-disk SQLite file."""

from __future__ import annotations

from itertools import count
from typing import Any

import pytest
import pytest_asyncio

from packages.catalog_shared.config import PostgresSettings
from resources.substrates.postgres import create_postgres_engine
from services.state.catalog_store.config import CatalogStoreSettings
from services.state.catalog_store.data.runtime import CatalogPostgresRuntime
from services.state.catalog_store.domain import (
    CollectionInput,
    ExecutionInput,
    ExecutionStatus,
    GranuleInput,
    GranuleStatus,
)

_sequence = count(1)


@pytest.fixture
def store_settings() -> CatalogStoreSettings:
    return CatalogStoreSettings()


@pytest_asyncio.fixture
async def runtime(tmp_path, store_settings):
    engine = create_postgres_engine(
        PostgresSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    )
    runtime = CatalogPostgresRuntime.from_engine(engine, settings=store_settings)
    await runtime.create_schema()
    yield runtime
    await runtime.dispose()


@pytest_asyncio.fixture
async def collection(runtime):
    async with runtime.transaction() as conn:
        return await runtime.collections.upsert(
            conn,
            CollectionInput(
                name="MOD09GQ",
                version="006",
                sample_file_name="MOD09GQ.A2017025.h21v00.006.2017034065104.hdf",
                granule_id_validation_regex=r"^MOD09GQ\.A[\d]{7}\.[\S]{6}\.006\.[\d]{13}$",
                granule_id_extraction_regex=r"(MOD09GQ\..*)(\.hdf|\.cmr|_ndvi\.jpg)",
                files=[{"bucket": "protected", "regex": r"^MOD09GQ\..*\.hdf$"}],
            ),
        )


@pytest.fixture
def make_granule(collection):
    def _make(
        status: GranuleStatus = GranuleStatus.RUNNING,
        *,
        granule_id: str | None = None,
        **overrides: Any,
    ) -> GranuleInput:
        overrides.setdefault("collection_cumulus_id", collection.cumulus_id)
        return GranuleInput(
            granule_id=granule_id or f"granule-{next(_sequence)}",
            status=status,
            **overrides,
        )

    return _make


@pytest.fixture
def make_execution():
    def _make(
        status: ExecutionStatus = ExecutionStatus.RUNNING, **overrides: Any
    ) -> ExecutionInput:
        overrides.setdefault(
            "arn", f"arn:aws:states:us-east-1:000000000000:execution:wf:{next(_sequence)}"
        )
        return ExecutionInput(status=status, **overrides)

    return _make
