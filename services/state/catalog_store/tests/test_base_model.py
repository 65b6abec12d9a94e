"""Tests for the generic table accessor against SQLite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from services.state.catalog_store.domain import ProviderInput, UpdatedAtRange
from services.state.catalog_store.errors import RecordDoesNotExist, UnknownColumn


def _provider(name: str, **overrides) -> ProviderInput:
    return ProviderInput(name=name, host=f"{name}.example.com", **overrides)


def _at(day: int) -> datetime:
    return datetime(2024, 3, day, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_returns_requested_columns(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        default = await providers.create(conn, _provider("alpha"))
        custom = await providers.create(
            conn, _provider("beta"), returning=["cumulus_id", "name", "protocol"]
        )

    assert list(default[0]) == ["cumulus_id"]
    assert custom[0]["name"] == "beta"
    assert custom[0]["protocol"] == "http"
    assert custom[0]["cumulus_id"] > default[0]["cumulus_id"]


@pytest.mark.asyncio
async def test_get_matches_exact_filter_and_raises_when_missing(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        await providers.create(conn, _provider("alpha"))
        await providers.create(conn, _provider("alphabet"))

        record = await providers.get(conn, {"name": "alpha"})
        assert record.host == "alpha.example.com"
        assert record.created_at.tzinfo is not None

        with pytest.raises(RecordDoesNotExist) as excinfo:
            await providers.get(conn, {"name": "alp"})

    assert isinstance(excinfo.value, KeyError)
    assert "providers" in str(excinfo.value)


@pytest.mark.asyncio
async def test_exists_reports_presence_without_raising(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        assert await providers.exists(conn, {"name": "alpha"}) is False
        await providers.create(conn, _provider("alpha"))
        assert await providers.exists(conn, {"name": "alpha"}) is True
        assert await providers.delete(conn, {"name": "alpha"}) == 1
        assert await providers.exists(conn, {"name": "alpha"}) is False


@pytest.mark.asyncio
async def test_search_sorts_and_matches_null_filters(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        await providers.insert(
            conn,
            [
                _provider("b", port=21),
                _provider("a"),
                _provider("c"),
            ],
        )
        descending = await providers.search(conn, {}, sort_by="name", order="desc")
        without_port = await providers.search(conn, {"port": None}, sort_by="name")

    assert [record.name for record in descending] == ["c", "b", "a"]
    assert [record.name for record in without_port] == ["a", "c"]


@pytest.mark.asyncio
async def test_unknown_columns_are_rejected_before_querying(runtime) -> None:
    async with runtime.connect() as conn:
        with pytest.raises(UnknownColumn):
            await runtime.providers.search(conn, {"nickname": "x"})
        with pytest.raises(ValueError):
            await runtime.providers.search(conn, {}, sort_by="name", order="sideways")


@pytest.mark.asyncio
async def test_count_combines_conditions_and_groups(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        await providers.insert(
            conn,
            [
                _provider("a", protocol="s3", port=1),
                _provider("b", protocol="s3", port=5),
                _provider("c", protocol="ftp", port=9),
            ],
        )
        total = await providers.count(conn)
        filtered = await providers.count(conn, [{"protocol": "s3"}, ("port", ">", 2)])
        grouped = await providers.count(
            conn, [("port", ">=", 1)], group_by=["protocol"]
        )

    assert total == [{"count": 3}]
    assert filtered == [{"count": 1}]
    assert sorted(grouped, key=lambda row: row["protocol"]) == [
        {"protocol": "ftp", "count": 1},
        {"protocol": "s3", "count": 2},
    ]


@pytest.mark.asyncio
async def test_count_rejects_unknown_operator(runtime) -> None:
    async with runtime.connect() as conn:
        with pytest.raises(ValueError, match="unsupported operator"):
            await runtime.providers.count(conn, [("port", "~", 1)])


@pytest.mark.asyncio
async def test_cumulus_id_resolution(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        rows = await providers.insert(conn, [_provider("a"), _provider("b")])
        ids = [row["cumulus_id"] for row in rows]

        assert await providers.get_record_cumulus_id(conn, {"name": "b"}) == ids[1]
        with pytest.raises(RecordDoesNotExist):
            await providers.get_record_cumulus_id(conn, {"name": "zzz"})

        single = await providers.get_records_cumulus_ids(conn, ["name"], ["a", "zzz", "b"])
        paired = await providers.get_records_cumulus_ids(
            conn,
            ["name", "host"],
            [("a", "a.example.com"), ("b", "wrong.example.com")],
        )

    assert sorted(single) == ids
    assert paired == [ids[0]]


@pytest.mark.asyncio
async def test_insert_preserves_order_and_fills_missing_columns(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        rows = await providers.insert(
            conn,
            [_provider("x", port=80), _provider("y"), _provider("z", username="u")],
            returning=["name", "port", "username"],
        )
        records = await providers.search(conn, {}, sort_by="cumulus_id")

    assert rows == [
        {"name": "x", "port": 80, "username": None},
        {"name": "y", "port": None, "username": None},
        {"name": "z", "port": None, "username": "u"},
    ]
    assert all(record.created_at is not None for record in records)


@pytest.mark.asyncio
async def test_insert_fills_missing_columns_from_server_defaults(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        batch = await providers.insert(
            conn,
            [{"name": "a", "host": "h", "protocol": "ftp"}, {"name": "b", "host": "h"}],
            returning=["name", "protocol"],
        )
        single = await providers.create(
            conn, {"name": "c", "host": "h"}, returning=["protocol"]
        )

    assert batch == [
        {"name": "a", "protocol": "ftp"},
        {"name": "b", "protocol": "http"},
    ]
    assert single == [{"protocol": "http"}]


@pytest.mark.asyncio
async def test_insert_is_all_or_nothing(runtime) -> None:
    with pytest.raises(IntegrityError):
        async with runtime.transaction() as conn:
            await runtime.providers.insert(
                conn, [_provider("dup"), _provider("ok"), _provider("dup")]
            )

    async with runtime.connect() as conn:
        assert await runtime.providers.count(conn) == [{"count": 0}]


@pytest.mark.asyncio
async def test_insert_of_nothing_is_a_no_op(runtime) -> None:
    async with runtime.connect() as conn:
        assert await runtime.providers.insert(conn, []) == []


@pytest.mark.asyncio
async def test_update_returns_only_requested_columns_of_affected_rows(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        await providers.insert(conn, [_provider("a"), _provider("b")])

        silent = await providers.update(conn, {"name": "a"}, {"port": 8080})
        returned = await providers.update(
            conn, {"name": "b"}, {"port": 9090}, returning=["name", "port"]
        )
        missed = await providers.update(
            conn, {"name": "zzz"}, {"port": 1}, returning=["name"]
        )
        record = await providers.get(conn, {"name": "a"})

    assert silent == []
    assert returned == [{"name": "b", "port": 9090}]
    assert missed == []
    assert record.port == 8080


@pytest.mark.asyncio
async def test_delete_returns_removed_count_and_is_idempotent(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        await providers.insert(
            conn, [_provider("a", protocol="s3"), _provider("b", protocol="s3")]
        )
        assert await providers.delete(conn, {"protocol": "s3"}) == 2
        assert await providers.delete(conn, {"protocol": "s3"}) == 0


@pytest.mark.asyncio
async def test_search_with_updated_at_range_bounds_are_inclusive(runtime) -> None:
    providers = runtime.providers
    async with runtime.transaction() as conn:
        for day in (1, 2, 3):
            await providers.create(
                conn,
                _provider(f"p{day}", created_at=_at(day), updated_at=_at(day)),
            )

        both = await providers.search_with_updated_at_range(
            conn,
            {},
            UpdatedAtRange(updated_at_from=_at(2), updated_at_to=_at(3)),
        )
        from_only = await providers.search_with_updated_at_range(
            conn, {}, UpdatedAtRange(updated_at_from=_at(3))
        )
        to_only = await providers.search_with_updated_at_range(
            conn, {"name": "p1"}, UpdatedAtRange(updated_at_to=_at(1))
        )
        unbounded = await providers.search_with_updated_at_range(conn, {}, UpdatedAtRange())

    assert sorted(record.name for record in both) == ["p2", "p3"]
    assert [record.name for record in from_only] == ["p3"]
    assert [record.name for record in to_only] == ["p1"]
    assert len(unbounded) == 3
