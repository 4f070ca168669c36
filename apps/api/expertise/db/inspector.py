from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.db.catalog import DEFAULT_SCHEMA, TargetSchema

logger = logging.getLogger(__name__)

VECTOR_TYPE_PATTERN = re.compile(r"^vector\((\d+)\)$")

TABLE_EXISTS_SQL = text(
    """
    SELECT EXISTS (
        SELECT FROM information_schema.tables
        WHERE table_schema = :schema
        AND table_name = :table
    )
    """
)

COLUMN_EXISTS_SQL = text(
    """
    SELECT EXISTS (
        SELECT FROM information_schema.columns
        WHERE table_schema = :schema
        AND table_name = :table
        AND column_name = :column
    )
    """
)

COLUMN_NAMES_SQL = text(
    """
    SELECT column_name FROM information_schema.columns
    WHERE table_schema = :schema
    AND table_name = :table
    """
)

COLUMN_TYPE_SQL = text(
    """
    SELECT format_type(a.atttypid, a.atttypmod)
    FROM pg_attribute a
    JOIN pg_class c ON c.oid = a.attrelid
    JOIN pg_namespace n ON n.oid = c.relnamespace
    WHERE n.nspname = :schema
    AND c.relname = :table
    AND a.attname = :column
    AND NOT a.attisdropped
    """
)

EXTENSION_EXISTS_SQL = text(
    """
    SELECT EXISTS (
        SELECT FROM pg_extension
        WHERE extname = :name
    )
    """
)


def parse_vector_dimension(type_name: Optional[str]) -> Optional[int]:
    """
    Extract ``N`` from a ``vector(N)`` type string, ``None`` for anything else.
    """

    if type_name is None:
        return None
    match = VECTOR_TYPE_PATTERN.match(type_name.strip().lower())
    if match is None:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class LiveSchema:
    table_exists: bool
    columns: FrozenSet[str]
    vector_dimension: Optional[int]

    def missing_columns(self, target: TargetSchema) -> Tuple[str, ...]:
        return tuple(name for name in target.column_names if name not in self.columns)

    def missing_reconciled_columns(self, target: TargetSchema) -> Tuple[str, ...]:
        """
        Missing columns that a reconciliation run would add.
        """

        return tuple(column.name for column in target.reconciled_columns if column.name not in self.columns)

    def missing_created_only_columns(self, target: TargetSchema) -> Tuple[str, ...]:
        """
        Missing columns that only exist through CREATE TABLE and are never added later.
        """

        return tuple(
            column.name for column in target.columns if not column.reconciled and column.name not in self.columns
        )


class SchemaInspector:
    """
    Read-only introspection of the live database. Every query runs in its own
    connection; database errors propagate to the caller.
    """

    def __init__(self, engine: AsyncEngine, schema: str = DEFAULT_SCHEMA) -> None:
        self._engine = engine
        self._schema = schema

    async def _scalar(self, statement, **params):
        async with self._engine.begin() as connection:
            result = await connection.execute(statement, {"schema": self._schema, **params})
            return result.scalar()

    async def table_exists(self, table: str) -> bool:
        return bool(await self._scalar(TABLE_EXISTS_SQL, table=table))

    async def column_exists(self, table: str, column: str) -> bool:
        return bool(await self._scalar(COLUMN_EXISTS_SQL, table=table, column=column))

    async def column_names(self, table: str) -> FrozenSet[str]:
        async with self._engine.begin() as connection:
            result = await connection.execute(COLUMN_NAMES_SQL, {"schema": self._schema, "table": table})
            return frozenset(result.scalars().all())

    async def vector_dimension(self, table: str, column: str) -> Optional[int]:
        type_name = await self._scalar(COLUMN_TYPE_SQL, table=table, column=column)
        if type_name is None:
            logger.warning("Column %s.%s not found; cannot detect vector dimension", table, column)
            return None

        dimension = parse_vector_dimension(type_name)
        if dimension is None:
            logger.warning("Could not detect vector dimension of %s.%s, got type %r", table, column, type_name)
        return dimension

    async def extension_installed(self, name: str = "vector") -> bool:
        async with self._engine.begin() as connection:
            result = await connection.execute(EXTENSION_EXISTS_SQL, {"name": name})
            return bool(result.scalar())

    async def snapshot(self, target: TargetSchema) -> LiveSchema:
        if not await self.table_exists(target.table_name):
            return LiveSchema(table_exists=False, columns=frozenset(), vector_dimension=None)

        columns = await self.column_names(target.table_name)
        dimension = None
        if target.embedding_column in columns:
            dimension = await self.vector_dimension(target.table_name, target.embedding_column)
        return LiveSchema(table_exists=True, columns=columns, vector_dimension=dimension)
