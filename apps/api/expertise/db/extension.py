import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from expertise.db.errors import VectorExtensionUnavailableError

logger = logging.getLogger(__name__)

EXTENSION_NAME = "vector"
PROBE_VECTOR = "[1,2,3]"


class ExtensionInstaller:
    """
    Installs pgvector and proves that the ``vector`` type actually works.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def install(self) -> None:
        logger.info("Installing pgvector extension...")
        try:
            async with self._engine.begin() as connection:
                await connection.execute(text(f"CREATE EXTENSION IF NOT EXISTS {EXTENSION_NAME}"))
            logger.info("pgvector extension installed/verified")

            async with self._engine.begin() as connection:
                result = await connection.execute(text(f"SELECT vector_dims('{PROBE_VECTOR}'::vector)"))
                dims = result.scalar()
        except SQLAlchemyError as exc:
            logger.error("Failed to install pgvector extension: %s", exc)
            logger.error("Vector similarity search will not work without pgvector")
            raise VectorExtensionUnavailableError("pgvector extension is required but not available") from exc

        if dims != 3:
            logger.error("pgvector probe returned %r for %s", dims, PROBE_VECTOR)
            raise VectorExtensionUnavailableError(f"pgvector probe returned unexpected dimension {dims!r}")

        logger.info("pgvector functionality confirmed")
