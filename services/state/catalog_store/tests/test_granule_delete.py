"""Tests for granule existence and ordered granule deletion."""

from __future__ import annotations

import pytest

from services.state.catalog_store.domain import FileInput, GranuleStatus
from services.state.catalog_store.errors import DeletePublishedGranule, PreconditionFailed


async def _granule_with_links(runtime, conn, make_granule, make_execution, *, published=False):
    record = (
        await runtime.granules.upsert(
            conn, make_granule(GranuleStatus.COMPLETED, published=published)
        )
    ).record
    for _ in range(2):
        execution = await runtime.executions.upsert(conn, make_execution())
        await runtime.granules_executions.upsert(
            conn,
            {"granule_cumulus_id": record.cumulus_id, "execution_cumulus_id": execution.cumulus_id},
        )
    await runtime.files.upsert(
        conn,
        FileInput(
            granule_cumulus_id=record.cumulus_id,
            bucket="protected",
            key=f"{record.granule_id}.hdf",
        ),
    )
    return record


async def _counts(runtime, conn, granule_cumulus_id: int) -> tuple[int, int, int]:
    granules = await runtime.granules.count(conn, [{"cumulus_id": granule_cumulus_id}])
    links = await runtime.granules_executions.count(
        conn, [{"granule_cumulus_id": granule_cumulus_id}]
    )
    files = await runtime.files.count(conn, [{"granule_cumulus_id": granule_cumulus_id}])
    return granules[0]["count"], links[0]["count"], files[0]["count"]


@pytest.mark.asyncio
async def test_exists_tracks_create_and_delete(runtime, make_granule) -> None:
    granule = make_granule()
    key = {"granule_id": granule.granule_id}
    async with runtime.transaction() as conn:
        assert await runtime.granules.exists(conn, key) is False
        await runtime.granules.upsert(conn, granule)
        assert await runtime.granules.exists(conn, key) is True
        assert await runtime.granules.delete(conn, key) == 1
        assert await runtime.granules.exists(conn, key) is False


@pytest.mark.asyncio
async def test_delete_removes_links_files_and_granule(
    runtime, make_granule, make_execution
) -> None:
    async with runtime.transaction() as conn:
        record = await _granule_with_links(runtime, conn, make_granule, make_execution)
        assert await _counts(runtime, conn, record.cumulus_id) == (1, 2, 1)

    async with runtime.transaction() as conn:
        deleted = await runtime.granules.delete(conn, {"granule_id": record.granule_id})

    async with runtime.connect() as conn:
        assert deleted == 1
        assert await _counts(runtime, conn, record.cumulus_id) == (0, 0, 0)
        assert await runtime.executions.count(conn) == [{"count": 2}]


@pytest.mark.asyncio
async def test_failed_delete_leaves_every_row_in_place(
    runtime, make_granule, make_execution, monkeypatch
) -> None:
    async with runtime.transaction() as conn:
        record = await _granule_with_links(runtime, conn, make_granule, make_execution)

    async def _fail(*args, **kwargs):
        raise RuntimeError("file store unavailable")

    monkeypatch.setattr(runtime.granules.files, "delete_in", _fail)
    with pytest.raises(RuntimeError):
        async with runtime.transaction() as conn:
            await runtime.granules.delete(conn, {"cumulus_id": record.cumulus_id})

    async with runtime.connect() as conn:
        assert await _counts(runtime, conn, record.cumulus_id) == (1, 2, 1)


@pytest.mark.asyncio
async def test_published_granule_delete_fails_before_mutation(
    runtime, make_granule, make_execution
) -> None:
    async with runtime.transaction() as conn:
        record = await _granule_with_links(
            runtime, conn, make_granule, make_execution, published=True
        )

    async with runtime.connect() as raw:
        statements: list = []

        class _Recording:
            dialect = raw.dialect

            async def execute(self, statement, parameters=None):
                statements.append(statement)
                return await raw.execute(statement, parameters)

        with pytest.raises(DeletePublishedGranule) as excinfo:
            await runtime.granules.delete(_Recording(), {"granule_id": record.granule_id})

    assert isinstance(excinfo.value, PreconditionFailed)
    assert not isinstance(excinfo.value, OSError)
    assert excinfo.value.granule_id == record.granule_id
    assert len(statements) == 1
    assert statements[0].is_select

    async with runtime.connect() as conn:
        assert await _counts(runtime, conn, record.cumulus_id) == (1, 2, 1)


@pytest.mark.asyncio
async def test_delete_of_missing_granule_is_not_an_error(runtime) -> None:
    async with runtime.transaction() as conn:
        assert await runtime.granules.delete(conn, {"granule_id": "never-existed"}) == 0


@pytest.mark.asyncio
async def test_execution_delete_removes_granule_links_first(
    runtime, make_granule, make_execution
) -> None:
    async with runtime.transaction() as conn:
        record = await _granule_with_links(runtime, conn, make_granule, make_execution)
        execution_ids = await runtime.granules_executions.search_execution_cumulus_ids(
            conn, [record.cumulus_id]
        )

    async with runtime.transaction() as conn:
        deleted = await runtime.executions.delete(conn, {"cumulus_id": execution_ids[0]})

    async with runtime.connect() as conn:
        remaining = await runtime.granules_executions.search_execution_cumulus_ids(
            conn, [record.cumulus_id]
        )
        assert deleted == 1
        assert remaining == execution_ids[1:]
        assert await runtime.granules.exists(conn, {"cumulus_id": record.cumulus_id})
