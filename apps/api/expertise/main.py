from fastapi import FastAPI

from expertise.api import api_router
from expertise.core.config import settings
from expertise.core.logging import configure_logging
from expertise.db.init_db import init_db

configure_logging(settings.log_level_value)

app = FastAPI(
    title=settings.project_name,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/healthz", tags=["health"])
async def healthz() -> dict[str, str]:
    """
    Light-weight liveness probe.
    """

    return {"status": "ok"}


@app.on_event("startup")
async def on_startup() -> None:
    app.state.schema_report = await init_db()
