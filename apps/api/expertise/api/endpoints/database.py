from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from expertise.db.catalog import TargetSchema
from expertise.db.inspector import SchemaInspector
from expertise.db.report import ReconciliationReport
from expertise.dependencies import get_schema_inspector, get_startup_report, get_target_schema
from expertise.schemas.database import DatabaseHealthResponse, LiveSchemaPayload

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/database", response_model=DatabaseHealthResponse)
async def database_health(
    inspector: SchemaInspector = Depends(get_schema_inspector),
    target: TargetSchema = Depends(get_target_schema),
    startup_report: ReconciliationReport | None = Depends(get_startup_report),
) -> DatabaseHealthResponse:
    """
    Report pgvector availability and how the live embeddings table compares to the target schema.
    """

    try:
        pgvector_available = await inspector.extension_installed()
        live = await inspector.snapshot(target)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Database introspection failed: {exc}") from exc

    dimension_matches = live.vector_dimension == target.dimensions
    missing = live.missing_reconciled_columns(target)
    healthy = pgvector_available and live.table_exists and not missing and dimension_matches

    return DatabaseHealthResponse(
        status="healthy" if healthy else "degraded",
        pgvector_available=pgvector_available,
        live_schema=LiveSchemaPayload(
            table=target.qualified_name,
            table_exists=live.table_exists,
            missing_columns=list(missing),
            missing_created_only_columns=list(live.missing_created_only_columns(target)),
            vector_dimension=live.vector_dimension,
            expected_dimension=target.dimensions,
            dimension_matches=dimension_matches,
        ),
        startup_report=startup_report.to_dict() if startup_report is not None else None,
    )
