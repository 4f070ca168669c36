from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.db.catalog import IndexSpec, TargetSchema
from expertise.db.errors import TableCreationError
from expertise.db.report import ReconciliationReport

logger = logging.getLogger(__name__)


class IndexBuilder:
    def __init__(self, engine: AsyncEngine, qualified_table: str) -> None:
        self._engine = engine
        self._qualified_table = qualified_table

    async def build(self, indexes: Sequence[IndexSpec]) -> ReconciliationReport:
        """
        Create every index that does not exist yet. A failing index is logged
        and recorded; the remaining ones are still attempted.
        """

        logger.info("Creating indexes for %s...", self._qualified_table)
        report = ReconciliationReport()
        for index in indexes:
            try:
                async with self._engine.begin() as connection:
                    await connection.execute(text(index.create_sql(self._qualified_table)))
            except SQLAlchemyError as exc:
                logger.warning("Could not create index %s: %s", index.name, exc)
                report.record("index", index.name, str(exc))
                continue
            report.indexes_ensured.append(index.name)

        logger.info("Ensured %d/%d indexes for %s", len(report.indexes_ensured), len(indexes), self._qualified_table)
        return report


class TableCreator:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create(self, schema: TargetSchema) -> ReconciliationReport:
        logger.info("Creating %s with vector(%d)...", schema.qualified_name, schema.dimensions)
        try:
            async with self._engine.begin() as connection:
                await connection.execute(text(schema.create_table_sql()))
        except SQLAlchemyError as exc:
            logger.error("Failed to create %s: %s", schema.qualified_name, exc)
            raise TableCreationError(f"Could not create {schema.qualified_name}") from exc

        logger.info("Created %s", schema.qualified_name)
        report = await IndexBuilder(self._engine, schema.qualified_name).build(schema.indexes)
        report.table_created = True
        return report

