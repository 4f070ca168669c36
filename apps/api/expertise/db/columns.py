from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.db.catalog import ColumnSpec, TargetSchema
from expertise.db.inspector import SchemaInspector
from expertise.db.report import ReconciliationReport

logger = logging.getLogger(__name__)


class ColumnReconciler:
    """
    Adds catalog columns that are missing from an existing table.

    Existing columns are never altered or dropped, even when their live type
    differs from the catalog.
    """

    def __init__(self, engine: AsyncEngine, inspector: SchemaInspector, schema: TargetSchema) -> None:
        self._engine = engine
        self._inspector = inspector
        self._schema = schema

    async def reconcile(self, required: Sequence[ColumnSpec]) -> ReconciliationReport:
        logger.info("Checking required columns in %s...", self._schema.qualified_name)
        report = ReconciliationReport()
        for column in required:
            try:
                if await self._inspector.column_exists(self._schema.table_name, column.name):
                    continue
                logger.warning("Column '%s' missing, adding it...", column.name)
                async with self._engine.begin() as connection:
                    await connection.execute(text(self._schema.add_column_sql(column)))
            except SQLAlchemyError as exc:
                logger.warning("Could not check/add column '%s': %s", column.name, exc)
                report.record("column", column.name, str(exc))
                continue

            logger.info("Added column '%s' to %s", column.name, self._schema.qualified_name)
            report.columns_added.append(column.name)

        return report
