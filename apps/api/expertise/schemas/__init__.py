from expertise.schemas.database import DatabaseHealthResponse, LiveSchemaPayload

__all__ = [
    "DatabaseHealthResponse",
    "LiveSchemaPayload",
]
