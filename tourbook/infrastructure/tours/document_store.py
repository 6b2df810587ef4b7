"""
Adapter: generic SQLAlchemy-backed document repository.

Implements the DocumentRepository port for one table. Executes shaped
queries (filter, sort, offset/limit in SQL; projection on the resulting
documents), casts raw query-string values to column types, and runs
partial updates that bump the internal ``version`` column.
"""

import logging
import operator
from datetime import datetime, timezone
from functools import cached_property
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import Column, Table, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine, RowMapping

from tourbook.domain.tours.errors import (
    InvalidIdentifierError,
    InvalidInputError,
    InvalidQueryError,
)
from tourbook.domain.tours.ports import DocumentRepository
from tourbook.domain.tours.query import (
    EQUALS,
    IN,
    INTERNAL_VERSION_FIELD,
    SQL_INT_MAX,
    FilterCondition,
    QueryOptions,
)
from tourbook.infrastructure.tours.tables import field_name

logger = logging.getLogger(__name__)

OPERATORS = {
    EQUALS: operator.eq,
    "ge": operator.ge,
    "gt": operator.gt,
    "le": operator.le,
    "lt": operator.lt,
}

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def parse_id(value: Any, field: str = "id") -> str:
    """Validate an identifier and return its canonical string form."""
    try:
        return str(UUID(str(value)))
    except ValueError:
        raise InvalidIdentifierError(value, field) from None


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_reference(column: Column) -> bool:
    return column.primary_key or bool(column.foreign_keys)


class SqlDocumentRepository(DocumentRepository):
    """CRUD over one table, speaking documents keyed by wire field names.

    Subclasses narrow every read with ``_base_conditions`` and enrich
    documents with ``_populate``.
    """

    table: Table
    virtual_fields: frozenset[str] = frozenset()

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ── Field mapping ────────────────────────────────────────────────

    @cached_property
    def _writable(self) -> dict[str, Column]:
        return {field_name(c): c for c in self.table.c}

    @cached_property
    def _readable(self) -> dict[str, Column]:
        return {
            name: c for name, c in self._writable.items() if not c.info.get("hidden")
        }

    def _column(self, name: str, purpose: str) -> Column:
        column = self._readable.get(name)
        if column is None:
            raise InvalidQueryError(f"Invalid {purpose} field: {name}")
        return column

    def _cast(self, column: Column, raw: Any) -> Any:
        if _is_reference(column):
            return parse_id(raw, field_name(column))
        if not isinstance(raw, str):
            return raw
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            raise InvalidQueryError(
                f"Cannot filter on field: {field_name(column)}"
            ) from None
        try:
            if python_type is bool:
                lowered = raw.lower()
                if lowered not in _TRUE | _FALSE:
                    raise ValueError(raw)
                return lowered in _TRUE
            if python_type is datetime:
                return as_utc(datetime.fromisoformat(raw))
            if python_type is int:
                number = int(raw)
                if abs(number) > SQL_INT_MAX:
                    raise ValueError(raw)
                return number
            if python_type is float:
                return float(raw)
        except ValueError:
            raise InvalidQueryError(
                f"Invalid value for {field_name(column)}: {raw}"
            ) from None
        if python_type in (dict, list):
            raise InvalidQueryError(f"Cannot filter on field: {field_name(column)}")
        return raw

    def _condition(self, condition: FilterCondition):
        column = self._column(condition.field, "filter")
        if condition.operator == IN:
            return column.in_([self._cast(column, v) for v in condition.value])
        comparison = OPERATORS.get(condition.operator)
        if comparison is None:
            raise InvalidQueryError(f"Unsupported filter operator: {condition.operator}")
        return comparison(column, self._cast(column, condition.value))

    def _values_to_row(self, values: dict[str, Any]) -> dict[str, Any]:
        row = {}
        for name, value in values.items():
            if name in self.virtual_fields:
                continue
            column = self._writable.get(name)
            if column is None:
                raise InvalidInputError(f"Unknown field: {name}")
            if _is_reference(column) and value is not None:
                value = parse_id(value, name)
            row[column.key] = value
        return row

    def _to_document(self, row: RowMapping) -> dict:
        doc = {}
        for name, column in self._readable.items():
            value = row[column.key]
            doc[name] = as_utc(value) if isinstance(value, datetime) else value
        return doc

    # ── Hooks ────────────────────────────────────────────────────────

    def _base_conditions(self) -> list:
        return []

    def _populate(self, conn: Connection, docs: list[dict]) -> list[dict]:
        return docs

    def _populate_reference(
        self,
        conn: Connection,
        docs: list[dict],
        field: str,
        table: Table,
        columns: Iterable[str],
        *conditions: Any,
    ) -> None:
        """Replace the id stored in ``field`` with a sub-document.

        References that ``conditions`` hide are replaced with ``None``.
        """
        ids = {d[field] for d in docs if isinstance(d.get(field), str)}
        if not ids:
            return
        selected = [table.c.id, *(table.c[name] for name in columns)]
        stmt = select(*selected).where(table.c.id.in_(ids), *conditions)
        rows = conn.execute(stmt).mappings()
        by_id = {row["id"]: {field_name(table.c[k]): v for k, v in row.items()} for row in rows}
        for doc in docs:
            if isinstance(doc.get(field), str):
                doc[field] = by_id.get(doc[field])

    # ── Projection ───────────────────────────────────────────────────

    def _check_projection(self, names: Iterable[str]) -> None:
        for name in names:
            if name not in self._readable and name not in self.virtual_fields:
                raise InvalidQueryError(f"Invalid projection field: {name}")

    def _project(self, doc: dict, options: QueryOptions) -> dict:
        if options.include_fields:
            return {k: v for k, v in doc.items() if k in options.include_fields}
        return {k: v for k, v in doc.items() if k not in options.exclude_fields}

    # ── DocumentRepository ───────────────────────────────────────────

    def find(self, options: QueryOptions) -> list[dict]:
        self._check_projection(options.include_fields)
        self._check_projection(options.exclude_fields)

        stmt = select(self.table).where(
            *self._base_conditions(),
            *(self._condition(c) for c in options.filters),
        )
        for key in options.sort:
            column = self._column(key.field, "sort")
            stmt = stmt.order_by(column.desc() if key.descending else column.asc())
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)

        with self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
            docs = self._populate(conn, [self._to_document(r) for r in rows])
        return [self._project(doc, options) for doc in docs]

    def get(self, doc_id: str) -> Optional[dict]:
        return self._get(doc_id, self._base_conditions())

    def _get(self, doc_id: str, conditions: list) -> Optional[dict]:
        stmt = select(self.table).where(self.table.c.id == parse_id(doc_id), *conditions)
        with self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
            if row is None:
                return None
            doc = self._populate(conn, [self._to_document(row)])[0]
        return self._project(doc, QueryOptions(exclude_fields=(INTERNAL_VERSION_FIELD,)))

    def create(self, values: dict[str, Any]) -> dict:
        row = self._values_to_row(values)
        with self._engine.begin() as conn:
            result = conn.execute(insert(self.table).values(**row))
            doc_id = result.inserted_primary_key[0]
            self._after_write(conn, doc_id, values)
        logger.info("Created %s id=%s", self.table.name, doc_id)
        # Read back unscoped: a new document may fall outside the default view
        return self._get(doc_id, [])

    def update(self, doc_id: str, values: dict[str, Any]) -> Optional[dict]:
        doc_id = parse_id(doc_id)
        row = self._values_to_row(values)
        stmt = (
            update(self.table)
            .where(self.table.c.id == doc_id, *self._base_conditions())
            .values(**row, version=self.table.c.version + 1)
        )
        with self._engine.begin() as conn:
            if conn.execute(stmt).rowcount == 0:
                return None
            self._after_write(conn, doc_id, values)
        logger.info("Updated %s id=%s", self.table.name, doc_id)
        return self.get(doc_id)

    def delete(self, doc_id: str) -> bool:
        stmt = delete(self.table).where(
            self.table.c.id == parse_id(doc_id), *self._base_conditions()
        )
        with self._engine.begin() as conn:
            deleted = conn.execute(stmt).rowcount > 0
        if deleted:
            logger.info("Deleted %s id=%s", self.table.name, doc_id)
        return deleted

    def _after_write(self, conn: Connection, doc_id: str, values: dict[str, Any]) -> None:
        """Persist data that lives outside ``table`` (e.g. associations)."""
