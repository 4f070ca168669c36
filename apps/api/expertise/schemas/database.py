from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class LiveSchemaPayload(BaseModel):
    table: str
    table_exists: bool
    missing_columns: List[str] = Field(default_factory=list)
    missing_created_only_columns: List[str] = Field(default_factory=list)
    vector_dimension: Optional[int] = None
    expected_dimension: int
    dimension_matches: bool


class DatabaseHealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    pgvector_available: bool
    live_schema: LiveSchemaPayload
    startup_report: Optional[Dict[str, Any]] = None
