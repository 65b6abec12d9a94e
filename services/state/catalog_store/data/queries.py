"""Prebuilt multi-table queries for streaming through ``QuerySearchClient``."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from sqlalchemy import Select, select

from services.state.catalog_store.data.schema import files, granules
from services.state.catalog_store.errors import UnknownColumn


def get_files_and_granule_info_query(
    *,
    search_params: Mapping[str, Any],
    sort_by_fields: Sequence[str],
    granule_columns: Sequence[str] = (),
) -> Select[Any]:
    """Select files joined to their granule.

    Rows carry every file column plus the requested granule columns under
    their own names. Filters and sort keys refer to file columns.
    """
    projected = [files]
    for name in granule_columns:
        if name not in granules.c:
            raise UnknownColumn(granules.name, name)
        if name in files.c:
            raise ValueError(
                f"granule column {name!r} collides with a file column of the same name"
            )
        projected.append(granules.c[name])

    statement = select(*projected).join(
        granules, files.c.granule_cumulus_id == granules.c.cumulus_id
    )
    for name, value in search_params.items():
        if name not in files.c:
            raise UnknownColumn(files.name, name)
        column = files.c[name]
        statement = statement.where(column.is_(None) if value is None else column == value)
    for name in sort_by_fields:
        if name not in files.c:
            raise UnknownColumn(files.name, name)
        statement = statement.order_by(files.c[name])
    return statement
