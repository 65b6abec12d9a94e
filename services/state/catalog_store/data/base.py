"""Generic table access shared by every Catalog Store accessor.

``BasePgModel`` binds one SQLAlchemy ``Table`` to an input shape and a
persisted record shape. Every operation takes the executor first, so the same
call composes inside a caller-managed transaction or runs on a bare
connection. Store errors other than ``RecordDoesNotExist`` propagate
unwrapped.
"""

from __future__ import annotations

import operator
from datetime import datetime
from typing import (
    Any,
    Callable,
    Generic,
    Literal,
    Mapping,
    Protocol,
    Sequence,
    TypeVar,
    Union,
)

from pydantic import BaseModel
from sqlalchemy import (
    Column,
    ColumnElement,
    DefaultClause,
    Result,
    Select,
    Table,
    and_,
    delete,
    func,
    insert,
    or_,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.sql import Executable

from services.state.catalog_store.domain import UpdatedAtRange, utc_now
from services.state.catalog_store.errors import RecordDoesNotExist, UnknownColumn

InputT = TypeVar("InputT", bound=BaseModel)
RecordT = TypeVar("RecordT", bound=BaseModel)

Filter = Mapping[str, Any]
Condition = Union[Mapping[str, Any], tuple[str, str, Any]]
SortOrder = Literal["asc", "desc"]

DEFAULT_RETURNING: tuple[str, ...] = ("cumulus_id",)

_OPERATORS: dict[str, Callable[[ColumnElement[Any], Any], ColumnElement[bool]]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "like": lambda column, value: column.like(value),
    "ilike": lambda column, value: column.ilike(value),
    "in": lambda column, value: column.in_(value),
    "not in": lambda column, value: column.not_in(value),
}

_GENERATED_TIMESTAMPS = frozenset({"created_at", "updated_at"})


class QueryExecutor(Protocol):
    """Anything that can run a parametrized statement: a connection or transaction."""

    @property
    def dialect(self) -> Dialect: ...

    async def execute(
        self, statement: Executable, parameters: Any = None
    ) -> Result[Any]: ...


def dialect_insert(conn: QueryExecutor) -> Callable[[Table], Any]:
    """Return the dialect ``insert`` construct that supports ``ON CONFLICT``."""
    name = conn.dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"ON CONFLICT inserts are not supported for {name}")


class BasePgModel(Generic[InputT, RecordT]):
    """Table-agnostic CRUD and search over one catalog table."""

    def __init__(self, *, table: Table, record_model: type[RecordT]) -> None:
        self.table = table
        self.record_model = record_model

    @property
    def table_name(self) -> str:
        return self.table.name

    async def get(self, conn: QueryExecutor, params: Filter) -> RecordT:
        """Return the one record matching ``params`` exactly."""
        statement = select(self.table).where(*self._where(params)).limit(1)
        row = (await conn.execute(statement)).mappings().first()
        if row is None:
            raise RecordDoesNotExist(self.table_name, dict(params))
        return self._to_record(row)

    async def search(
        self,
        conn: QueryExecutor,
        params: Filter,
        *,
        sort_by: str | Sequence[str] | None = None,
        order: SortOrder = "asc",
    ) -> list[RecordT]:
        statement = self._ordered(
            select(self.table).where(*self._where(params)), sort_by, order
        )
        result = await conn.execute(statement)
        return [self._to_record(row) for row in result.mappings()]

    async def search_with_updated_at_range(
        self,
        conn: QueryExecutor,
        params: Filter,
        updated_at_range: UpdatedAtRange | None = None,
    ) -> list[RecordT]:
        """Search ``params`` within inclusive ``updated_at`` bounds.

        The bound is applied only when at least one side is given; the missing
        side defaults to the epoch or the current time.
        """
        clauses = self._where(params)
        if updated_at_range is not None and updated_at_range.is_bounded:
            lower, upper = updated_at_range.bounds()
            clauses.append(self.table.c.updated_at.between(lower, upper))
        result = await conn.execute(select(self.table).where(*clauses))
        return [self._to_record(row) for row in result.mappings()]

    async def count(
        self,
        conn: QueryExecutor,
        conditions: Sequence[Condition] = (),
        *,
        group_by: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        """Count rows matching every condition, one entry per group.

        A condition is either an exact-match mapping or a
        ``(column, operator, value)`` triple.
        """
        group_columns = self._columns(group_by)
        statement = (
            select(*group_columns, func.count().label("count"))
            .select_from(self.table)
            .where(*self._conditions(conditions))
        )
        if group_columns:
            statement = statement.group_by(*group_columns)
        result = await conn.execute(statement)
        return [dict(row) for row in result.mappings()]

    async def exists(self, conn: QueryExecutor, params: Filter) -> bool:
        try:
            await self.get(conn, params)
        except RecordDoesNotExist:
            return False
        return True

    async def get_record_cumulus_id(self, conn: QueryExecutor, params: Filter) -> int:
        statement = (
            select(self.table.c.cumulus_id).where(*self._where(params)).limit(1)
        )
        cumulus_id = (await conn.execute(statement)).scalar_one_or_none()
        if cumulus_id is None:
            raise RecordDoesNotExist(self.table_name, dict(params))
        return cumulus_id

    async def get_records_cumulus_ids(
        self,
        conn: QueryExecutor,
        column_names: Sequence[str],
        values: Sequence[Any],
    ) -> list[int]:
        """Resolve surrogate ids for every matching value; unmatched values are dropped.

        With one column ``values`` is a flat list; with several, each value is
        a tuple in ``column_names`` order.
        """
        if not values:
            return []
        columns = self._columns(column_names)
        if len(columns) == 1:
            flat = [value[0] if isinstance(value, tuple) else value for value in values]
            clause = columns[0].in_(flat)
        else:
            clause = or_(
                *(
                    and_(*(column == part for column, part in zip(columns, value)))
                    for value in values
                )
            )
        result = await conn.execute(select(self.table.c.cumulus_id).where(clause))
        return list(result.scalars())

    async def search_by_cumulus_ids(
        self,
        conn: QueryExecutor,
        cumulus_ids: Sequence[int],
        *,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: str | Sequence[str] = "cumulus_id",
        order: SortOrder = "asc",
    ) -> list[RecordT]:
        if not cumulus_ids:
            return []
        statement = self._ordered(
            select(self.table).where(self.table.c.cumulus_id.in_(list(cumulus_ids))),
            sort_by,
            order,
        )
        if limit is not None:
            statement = statement.limit(limit)
        if offset is not None:
            statement = statement.offset(offset)
        result = await conn.execute(statement)
        return [self._to_record(row) for row in result.mappings()]

    async def create(
        self,
        conn: QueryExecutor,
        item: InputT | Mapping[str, Any],
        returning: Sequence[str] = DEFAULT_RETURNING,
    ) -> list[dict[str, Any]]:
        statement = (
            insert(self.table)
            .values(self._values(item))
            .returning(*self._columns(returning))
        )
        result = await conn.execute(statement)
        return [dict(row) for row in result.mappings()]

    async def insert(
        self,
        conn: QueryExecutor,
        items: Sequence[InputT | Mapping[str, Any]],
        returning: Sequence[str] = DEFAULT_RETURNING,
    ) -> list[dict[str, Any]]:
        """Insert every item in one statement; any constraint failure fails all."""
        if not items:
            return []
        statement = insert(self.table).returning(
            *self._columns(returning), sort_by_parameter_order=True
        )
        result = await conn.execute(statement, self._batch_values(items))
        return [dict(row) for row in result.mappings()]

    async def update(
        self,
        conn: QueryExecutor,
        params: Filter,
        patch: InputT | Mapping[str, Any],
        returning: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        values = self._values(patch)
        if not values:
            raise ValueError(f"update of {self.table_name} requires at least one column")
        statement = update(self.table).where(*self._where(params)).values(values)
        if not returning:
            await conn.execute(statement)
            return []
        result = await conn.execute(statement.returning(*self._columns(returning)))
        return [dict(row) for row in result.mappings()]

    async def delete(self, conn: QueryExecutor, params: Filter) -> int:
        result = await conn.execute(delete(self.table).where(*self._where(params)))
        return result.rowcount

    async def delete_in(
        self, conn: QueryExecutor, column_name: str, values: Sequence[Any]
    ) -> int:
        """Delete rows whose ``column_name`` is any of ``values``."""
        if not values:
            return 0
        column = self._column(column_name)
        result = await conn.execute(delete(self.table).where(column.in_(list(values))))
        return result.rowcount

    async def _upsert_on(
        self,
        conn: QueryExecutor,
        item: InputT | Mapping[str, Any],
        conflict_columns: Sequence[str],
    ) -> RecordT:
        """Insert ``item`` or overwrite the row sharing ``conflict_columns``.

        ``created_at`` of an existing row is never replaced.
        """
        values = self._values(item)
        statement = dialect_insert(conn)(self.table).values(values)
        overwrite: dict[str, Any] = {
            key: statement.excluded[key]
            for key in values
            if key not in conflict_columns and key != "created_at"
        }
        if "updated_at" not in overwrite:
            overwrite["updated_at"] = func.now()
        statement = statement.on_conflict_do_update(
            index_elements=list(conflict_columns), set_=overwrite
        ).returning(*self.table.c)
        row = (await conn.execute(statement)).mappings().one()
        return self._to_record(row)

    def _to_record(self, row: Mapping[str, Any]) -> RecordT:
        return self.record_model.model_validate(dict(row))

    def _column(self, name: str) -> Column[Any]:
        try:
            return self.table.c[name]
        except KeyError:
            raise UnknownColumn(self.table_name, name) from None

    def _columns(self, names: str | Sequence[str]) -> list[Column[Any]]:
        if isinstance(names, str):
            names = (names,)
        return [self._column(name) for name in names]

    def _where(self, params: Filter) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for name, value in params.items():
            column = self._column(name)
            clauses.append(column.is_(None) if value is None else column == value)
        return clauses

    def _conditions(self, conditions: Sequence[Condition]) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for condition in conditions:
            if isinstance(condition, tuple):
                name, op, value = condition
                try:
                    compare = _OPERATORS[op.lower()]
                except KeyError:
                    raise ValueError(f"unsupported operator {op!r}") from None
                clauses.append(compare(self._column(name), value))
            else:
                clauses.extend(self._where(condition))
        return clauses

    def _ordered(
        self,
        statement: Select[Any],
        sort_by: str | Sequence[str] | None,
        order: SortOrder,
    ) -> Select[Any]:
        if not sort_by:
            return statement
        if order not in ("asc", "desc"):
            raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
        columns = self._columns(sort_by)
        return statement.order_by(
            *(column.desc() if order == "desc" else column.asc() for column in columns)
        )

    def _values(self, item: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
        if isinstance(item, BaseModel):
            values = item.model_dump(exclude_none=True)
        else:
            values = dict(item)
        for name in values:
            self._column(name)
        return values

    def _batch_values(
        self, items: Sequence[BaseModel | Mapping[str, Any]]
    ) -> list[dict[str, Any]]:
        """Give every row the same keys so the batch runs as one statement."""
        rows = [self._values(item) for item in items]
        keys: list[str] = []
        for row in rows:
            keys.extend(key for key in row if key not in keys)
        now = utc_now()
        return [
            {key: row[key] if key in row else self._fill_value(key, now) for key in keys}
            for row in rows
        ]

    def _fill_value(self, name: str, now: datetime) -> Any:
        if name in _GENERATED_TIMESTAMPS:
            return now
        default = self.table.c[name].default
        if default is not None and default.is_scalar:
            return default.arg
        server_default = self.table.c[name].server_default
        if isinstance(server_default, DefaultClause) and isinstance(
            server_default.arg, str
        ):
            return server_default.arg
        return None
