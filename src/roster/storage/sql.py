"""Relational storage backend on async SQLAlchemy.

Each collection maps to one ORM model. Records are translated to and from
rows by column name, so a collection's record keys are exactly its table's
column names.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import ColumnElement, func, inspect, select
from sqlalchemy.orm import InstrumentedAttribute

from roster.db.engine import Database
from roster.db.models import Base, PersonRecord
from roster.storage.base import (
    CONTAINS,
    FindOptions,
    Predicate,
    Record,
    parse_condition,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLECTIONS: dict[str, type[Base]] = {
    "people": PersonRecord,
}


class _CollectionMapping:
    """Column-name to ORM-attribute mapping for one model."""

    def __init__(self, model: type[Base]) -> None:
        self.model = model
        mapper = inspect(model)
        self.attributes: dict[str, InstrumentedAttribute[Any]] = {}
        for attr in mapper.column_attrs:
            column_name = attr.columns[0].name
            self.attributes[column_name] = getattr(model, attr.key)
        self._keys = {
            attr.columns[0].name: attr.key for attr in mapper.column_attrs
        }
        (pk,) = mapper.primary_key
        self.primary_key = self.attributes[pk.name]

    def column(self, field: str) -> InstrumentedAttribute[Any]:
        try:
            return self.attributes[field]
        except KeyError:
            raise ValueError(
                f"Unknown field '{field}' for table {self.model.__tablename__}"
            ) from None

    def to_row(self, record: Record) -> Base:
        unknown = set(record) - set(self._keys)
        if unknown:
            raise ValueError(
                f"Unknown fields for table {self.model.__tablename__}: "
                f"{sorted(unknown)}"
            )
        # Columns missing from the record are written as NULL, not kept
        return self.model(
            **{key: record.get(name) for name, key in self._keys.items()}
        )

    def to_record(self, row: Base) -> Record:
        return {name: getattr(row, key) for name, key in self._keys.items()}


class SQLStorage:
    """Storage port backed by a SQL database."""

    def __init__(
        self,
        database: Database,
        collections: dict[str, type[Base]] | None = None,
    ) -> None:
        self._db = database
        self._mappings = {
            name: _CollectionMapping(model)
            for name, model in (collections or DEFAULT_COLLECTIONS).items()
        }
        self._initialized = False

    def _mapping(self, collection: str) -> _CollectionMapping:
        try:
            return self._mappings[collection]
        except KeyError:
            raise ValueError(f"Unknown collection '{collection}'") from None

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self._db.connect()
        await self._db.create_tables(
            [m.model.__table__ for m in self._mappings.values()]
        )
        self._initialized = True
        logger.debug(
            "sql_storage_initialized", extra={"collections": sorted(self._mappings)}
        )

    async def get(self, collection: str, record_id: str) -> Record | None:
        mapping = self._mapping(collection)
        async with self._db.session() as session:
            row = await session.get(mapping.model, record_id)
            return mapping.to_record(row) if row is not None else None

    async def put(self, collection: str, record_id: str, record: Record) -> None:
        mapping = self._mapping(collection)
        row = mapping.to_row({**record, "id": record_id})
        async with self._db.session() as session:
            await session.merge(row)

    async def delete(self, collection: str, record_id: str) -> bool:
        mapping = self._mapping(collection)
        async with self._db.session() as session:
            row = await session.get(mapping.model, record_id)
            if row is None:
                return False
            await session.delete(row)
        return True

    def _where(
        self, mapping: _CollectionMapping, predicate: Predicate
    ) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for field, condition in predicate.items():
            operator, operand = parse_condition(field, condition)
            column = mapping.column(field)
            if operator == CONTAINS:
                clauses.append(
                    func.lower(column).contains(operand.lower(), autoescape=True)
                )
            else:
                clauses.append(column == operand)
        return clauses

    async def find(
        self,
        collection: str,
        predicate: Predicate,
        options: FindOptions | None = None,
    ) -> list[Record]:
        options = options or FindOptions()
        mapping = self._mapping(collection)

        stmt = select(mapping.model).where(*self._where(mapping, predicate))
        if options.sort is not None:
            sort_column = mapping.column(options.sort)
            if options.descending:
                stmt = stmt.order_by(
                    sort_column.desc().nulls_last(), mapping.primary_key.desc()
                )
            else:
                stmt = stmt.order_by(
                    sort_column.asc().nulls_first(), mapping.primary_key.asc()
                )
        else:
            stmt = stmt.order_by(mapping.primary_key.asc())
        if options.offset:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)

        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [mapping.to_record(row) for row in result.scalars().all()]

    async def find_one(self, collection: str, predicate: Predicate) -> Record | None:
        mapping = self._mapping(collection)
        stmt = (
            select(mapping.model)
            .where(*self._where(mapping, predicate))
            .order_by(mapping.primary_key.asc())
            .limit(1)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            row = result.scalars().first()
            return mapping.to_record(row) if row is not None else None

    async def close(self) -> None:
        await self._db.disconnect()
        self._initialized = False
