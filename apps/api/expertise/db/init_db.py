from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.core.config import Settings, get_settings
from expertise.db.catalog import DEFAULT_DIMENSIONS, TargetSchema, build_target_schema
from expertise.db.columns import ColumnReconciler
from expertise.db.dimension import DimensionReconciler
from expertise.db.errors import TableCreationError
from expertise.db.extension import EXTENSION_NAME, ExtensionInstaller
from expertise.db.inspector import SchemaInspector
from expertise.db.report import ReconciliationReport, ReconciliationState
from expertise.db.tables import TableCreator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationConfig:
    expected_dimensions: int = DEFAULT_DIMENSIONS
    auto_reset_on_dimension_change: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReconciliationConfig":
        return cls(
            expected_dimensions=settings.embedding_dimensions,
            auto_reset_on_dimension_change=settings.auto_reset_on_dimension_change,
        )


class SchemaReconciler:
    """
    Brings the embeddings table in line with the target schema.

    Only the extension install and the initial table creation are fatal and
    raise ``SchemaReconciliationError``; every other step records its problems
    in the returned report so the service can still start.
    """

    def __init__(self, engine: AsyncEngine, schema: TargetSchema, config: ReconciliationConfig) -> None:
        if schema.dimensions != config.expected_dimensions:
            raise ValueError(
                f"Target schema uses vector({schema.dimensions}) but vector({config.expected_dimensions}) is expected"
            )
        self._schema = schema
        self._config = config
        self._inspector = SchemaInspector(engine, schema=schema.schema)
        self._installer = ExtensionInstaller(engine)
        self._creator = TableCreator(engine)
        self._columns = ColumnReconciler(engine, self._inspector, schema)
        self._dimension = DimensionReconciler(engine, self._inspector, schema, creator=self._creator)

    async def run(self) -> ReconciliationReport:
        report = ReconciliationReport()
        report.enter(ReconciliationState.UNCHECKED)

        await self._installer.install()
        report.enter(ReconciliationState.EXTENSION_VERIFIED)

        try:
            exists = await self._inspector.table_exists(self._schema.table_name)
        except SQLAlchemyError as exc:
            logger.error("Could not check whether %s exists: %s", self._schema.qualified_name, exc)
            report.record("table_check", self._schema.qualified_name, str(exc))
        else:
            try:
                await self._reconcile_table(report, exists)
            except TableCreationError as exc:
                if exc.report is not None:
                    report.merge(exc.report)
                exc.report = report
                raise

        await self._check_extension(report)
        report.enter(ReconciliationState.DONE)
        return report

    async def _reconcile_table(self, report: ReconciliationReport, exists: bool) -> None:
        if exists:
            logger.info("%s already exists", self._schema.qualified_name)
            report.enter(ReconciliationState.TABLE_PRESENT)

            report.merge(await self._columns.reconcile(self._schema.reconciled_columns))
            report.enter(ReconciliationState.COLUMNS_RECONCILED)

            report.merge(
                await self._dimension.reconcile(
                    self._config.expected_dimensions,
                    self._config.auto_reset_on_dimension_change,
                )
            )
            report.enter(ReconciliationState.DIMENSION_RECONCILED)
        else:
            logger.warning("%s does not exist, creating it...", self._schema.qualified_name)
            report.enter(ReconciliationState.TABLE_ABSENT)

            report.merge(await self._creator.create(self._schema))
            report.detected_dimension = self._schema.dimensions
            report.enter(ReconciliationState.INDEXES_READY)

    async def _check_extension(self, report: ReconciliationReport) -> None:
        try:
            present = await self._inspector.extension_installed(EXTENSION_NAME)
        except SQLAlchemyError as exc:
            logger.warning("Could not check pgvector extension: %s", exc)
            report.record("extension_check", EXTENSION_NAME, str(exc))
            return

        report.extension_present = present
        if present:
            logger.info("pgvector extension is available")
        else:
            logger.error("pgvector extension is NOT installed! Vector similarity search will not work properly")
            report.record("extension_check", EXTENSION_NAME, "pgvector extension is not installed")


async def init_db(engine: Optional[AsyncEngine] = None, settings: Optional[Settings] = None) -> ReconciliationReport:
    """
    Ensure the pgvector extension and the embeddings table exist before serving traffic.

    A missing vector capability is re-raised to the caller. Any other failed
    step is logged and the service starts anyway. When the table could not be
    created the returned report carries a "table" issue and the next start
    retries.
    """

    settings = settings or get_settings()
    if engine is None:
        from expertise.db.session import engine as default_engine

        engine = default_engine

    schema = build_target_schema(settings.embedding_dimensions, schema=settings.database_schema)
    reconciler = SchemaReconciler(engine, schema, ReconciliationConfig.from_settings(settings))

    logger.info("Checking database initialization...")
    try:
        report = await reconciler.run()
    except TableCreationError as exc:
        logger.error("Failed to initialize database: %s (cause: %s)", exc, exc.__cause__)
        logger.error("Embedding storage and retrieval will fail until the table can be created")
        report = exc.report or ReconciliationReport(
            states=[ReconciliationState.UNCHECKED, ReconciliationState.EXTENSION_VERIFIED]
        )
        message = f"{exc}: {exc.__cause__}"
        if report.table_dropped:
            logger.critical(
                "%s was dropped for a dimension reset and could not be recreated; its rows are lost",
                schema.qualified_name,
            )
            message = f"{message} (table was dropped for a dimension reset; existing rows are lost)"
        report.record("table", schema.qualified_name, message)
        return report

    if report.ok:
        logger.info("Database schema reconciled for %s", schema.qualified_name)
    else:
        logger.warning(
            "Database schema reconciled for %s with %d issue(s): %s",
            schema.qualified_name,
            len(report.issues),
            "; ".join(f"{issue.step}:{issue.subject}" for issue in report.issues),
        )
    return report
