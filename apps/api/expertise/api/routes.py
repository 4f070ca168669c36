from fastapi import APIRouter

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """
    Liveness of the API process only; see ``/health/database`` for the schema.
    """

    return {"status": "healthy"}
