from fastapi import APIRouter

from expertise.api.endpoints.database import router as database_router
from expertise.api.routes import router as health_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(database_router)

__all__ = ["api_router"]
