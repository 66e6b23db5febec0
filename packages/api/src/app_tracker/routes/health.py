# This project was developed with assistance from AI tools.
"""Liveness and readiness checks."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__

router = APIRouter()


class ComponentHealth(BaseModel):
    name: str
    status: str
    message: str
    version: str | None = None


async def _components(db: DatabaseService) -> list[ComponentHealth]:
    db_ok = await db.health_check()
    return [
        ComponentHealth(
            name="API",
            status="healthy",
            message="API is running",
            version=__version__,
        ),
        ComponentHealth(
            name="Database",
            status="healthy" if db_ok else "unhealthy",
            message="PostgreSQL connection ok" if db_ok else "PostgreSQL connection failed",
        ),
    ]


@router.get("/", response_model=list[ComponentHealth])
async def health(db: DatabaseService = Depends(get_db_service)) -> list[ComponentHealth]:
    """Component status; always 200 while the process is up."""
    return await _components(db)


@router.get("/ready", response_model=list[ComponentHealth])
async def ready(db: DatabaseService = Depends(get_db_service)):
    """503 until the database answers ``SELECT 1``."""
    components = await _components(db)
    if any(c.status != "healthy" for c in components):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=[c.model_dump() for c in components],
        )
    return components
