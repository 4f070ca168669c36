from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.db.catalog import TargetSchema
from expertise.db.errors import TableCreationError
from expertise.db.inspector import SchemaInspector
from expertise.db.report import ReconciliationReport
from expertise.db.tables import TableCreator

logger = logging.getLogger(__name__)

AUTO_RESET_ENV = "EXPERT_EMBEDDINGS_AUTO_RESET_ON_DIMENSION_CHANGE"


class DimensionReconciler:
    """
    Compares the live ``vector(N)`` type of the embedding column against the
    configured dimension.

    Dropping and recreating the table is the only destructive operation of the
    whole reconciliation and only happens when ``auto_reset`` is set.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        inspector: SchemaInspector,
        schema: TargetSchema,
        creator: TableCreator | None = None,
    ) -> None:
        self._engine = engine
        self._inspector = inspector
        self._schema = schema
        self._creator = creator or TableCreator(engine)

    async def reconcile(self, expected: int, auto_reset: bool) -> ReconciliationReport:
        report = ReconciliationReport()
        table = self._schema.table_name
        column = self._schema.embedding_column

        try:
            detected = await self._inspector.vector_dimension(table, column)
        except SQLAlchemyError as exc:
            logger.warning("Failed to verify embedding dimension: %s", exc)
            report.record("dimension", column, f"dimension introspection failed: {exc}")
            return report

        if detected is None:
            logger.warning("Embedding dimension of %s.%s could not be detected; skipping check", table, column)
            report.record("dimension", column, "embedding dimension could not be detected")
            return report

        report.detected_dimension = detected
        if detected == expected:
            logger.info("Embedding column is vector(%d) as expected", detected)
            return report

        logger.warning("Embedding vector dimension is %d but expected %d", detected, expected)
        if not auto_reset:
            message = (
                f"Dimension mismatch: {self._schema.qualified_name}.{column} is vector({detected}) but "
                f"vector({expected}) is expected. Migrate manually with "
                f"'ALTER TABLE {self._schema.qualified_name} ALTER COLUMN {column} TYPE vector({expected})' "
                f"or set {AUTO_RESET_ENV}=true to drop and recreate the table (all rows are lost)."
            )
            logger.error(message)
            report.record("dimension", column, message)
            return report

        logger.critical(
            "AUTO RESET ENABLED: dropping %s and recreating it with vector(%d); all existing embeddings are deleted",
            self._schema.qualified_name,
            expected,
        )
        try:
            async with self._engine.begin() as connection:
                await connection.execute(text(self._schema.drop_table_sql()))
        except SQLAlchemyError as exc:
            logger.error("Failed to drop %s for dimension reset: %s", self._schema.qualified_name, exc)
            report.record("dimension", column, f"drop for dimension reset failed: {exc}")
            return report

        report.table_dropped = True
        try:
            report.merge(await self._creator.create(self._schema))
        except TableCreationError as exc:
            # the table is gone at this point
            exc.report = report
            raise
        report.table_recreated = True
        report.detected_dimension = expected
        return report
