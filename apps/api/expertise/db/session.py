from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from expertise.core.config import settings

engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.sqlalchemy_echo,
    pool_pre_ping=True,
)


def get_engine() -> AsyncEngine:
    return engine
