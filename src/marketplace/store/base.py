"""Shared plumbing for the table repositories.

Each repository wraps one table: it converts Python values to column values
on the way in and validates rows into frozen domain models on the way out.
Repositories never commit; callers wrap writes in ``Database.transaction()``.
"""

from __future__ import annotations

import json
import sqlite3
from decimal import Decimal
from enum import StrEnum
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from marketplace.domain.errors import NotFoundError
from marketplace.store.database import insert_row, update_row
from marketplace.timeutil import to_timestamp, utc_now

M = TypeVar("M", bound=BaseModel)


def to_column(value: Any) -> Any:
    """Convert a Python value into something sqlite3 can bind."""
    if isinstance(value, StrEnum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return value


class Filters:
    """Accumulates ``column = ?`` style conditions for a WHERE clause."""

    def __init__(self) -> None:
        self.conditions: list[str] = []
        self.params: list[Any] = []

    def add(self, condition: str, *params: Any) -> Filters:
        self.conditions.append(condition)
        self.params.extend(to_column(p) for p in params)
        return self

    def equal(self, column: str, value: Any) -> Filters:
        """Add ``column = value`` unless *value* is None."""
        if value is not None:
            self.add(f"{column} = ?", value)
        return self

    def within(self, column: str, values: list[Any]) -> Filters:
        """Add ``column IN (...)``; an empty list matches nothing."""
        if not values:
            return self.add("0")
        placeholders = ", ".join("?" for _ in values)
        return self.add(f"{column} IN ({placeholders})", *values)

    @property
    def where(self) -> str:
        if not self.conditions:
            return ""
        return "WHERE " + " AND ".join(self.conditions)


class Repository(Generic[M]):
    """Row access for a single table keyed by one column."""

    table: ClassVar[str]
    model: ClassVar[type[BaseModel]]
    key_column: ClassVar[str] = "id"
    select_sql: ClassVar[str] = ""
    order_by: ClassVar[str] = "created_at DESC"
    touches_updated_at: ClassVar[bool] = True

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _select(self) -> str:
        return self.select_sql or f"SELECT * FROM {self.table}"

    def _to_model(self, row: sqlite3.Row | None) -> M | None:
        if row is None:
            return None
        return self.model.model_validate(dict(row))  # type: ignore[return-value]

    def get(self, key: str) -> M | None:
        """Return the row whose key equals *key*, or None."""
        row = self._conn.execute(
            f"SELECT * FROM ({self._select()}) WHERE {self.key_column} = ?",
            (key,),
        ).fetchone()
        return self._to_model(row)

    def insert(self, values: dict[str, Any]) -> M:
        """Insert a row and return it as a model."""
        insert_row(self._conn, self.table, {k: to_column(v) for k, v in values.items()})
        return self.get_required(values[self.key_column])

    def update(self, key: str, values: dict[str, Any]) -> M | None:
        """Apply *values* to the row keyed by *key* and return the updated row."""
        columns = {k: to_column(v) for k, v in values.items()}
        if columns and self.touches_updated_at:
            columns.setdefault("updated_at", to_timestamp(utc_now()))
        update_row(self._conn, self.table, self.key_column, key, columns)
        return self.get(key)

    def get_required(self, key: str) -> M:
        """Return the row keyed by *key*, raising NotFoundError when it is gone."""
        found = self.get(key)
        if found is None:
            raise NotFoundError(f"No {self.table} row for {key}")
        return found

    def update_required(self, key: str, values: dict[str, Any]) -> M:
        """Like ``update`` but raises NotFoundError when *key* matches nothing."""
        self.update(key, values)
        return self.get_required(key)

    def delete(self, key: str) -> bool:
        """Delete the row keyed by *key*; returns False when nothing matched."""
        cursor = self._conn.execute(
            f"DELETE FROM {self.table} WHERE {self.key_column} = ?", (key,)
        )
        return cursor.rowcount > 0

    def find(
        self,
        filters: Filters | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[M]:
        """Return rows matching *filters* in the repository's default order."""
        filters = filters or Filters()
        query = f"SELECT * FROM ({self._select()}) {filters.where} ORDER BY {self.order_by}"
        params = list(filters.params)
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        rows = self._conn.execute(query, params).fetchall()
        return [self._to_model(row) for row in rows]  # type: ignore[misc]

    def count(self, filters: Filters | None = None) -> int:
        filters = filters or Filters()
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM ({self._select()}) {filters.where}", filters.params
        ).fetchone()
        return int(row[0])

    def page(self, filters: Filters, page: int, limit: int) -> tuple[list[M], int]:
        """Return one page of matches plus the total match count."""
        items = self.find(filters, limit=limit, offset=(page - 1) * limit)
        return items, self.count(filters)
