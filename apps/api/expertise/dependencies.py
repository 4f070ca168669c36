from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.core.config import Settings, get_settings
from expertise.db.catalog import TargetSchema, build_target_schema
from expertise.db.inspector import SchemaInspector
from expertise.db.report import ReconciliationReport


def get_db_engine() -> AsyncEngine:
    from expertise.db.session import get_engine

    return get_engine()


def get_target_schema(settings: Settings = Depends(get_settings)) -> TargetSchema:
    return build_target_schema(settings.embedding_dimensions, schema=settings.database_schema)


def get_schema_inspector(
    engine: AsyncEngine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
) -> SchemaInspector:
    return SchemaInspector(engine, schema=settings.database_schema)


def get_startup_report(request: Request) -> ReconciliationReport | None:
    return getattr(request.app.state, "schema_report", None)
