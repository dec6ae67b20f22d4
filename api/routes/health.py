"""Health check endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import get_database
from database.engine import Database

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version="0.1.0")


@router.get("/ready")
async def readiness_check(database: Database = Depends(get_database)):
    """
    Readiness check for load balancers.

    Pings the database; a successful ping also restores the connection
    after an outage.
    """
    if await database.ping():
        return {"status": "ready", "database": "up"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unavailable", "database": "down"},
    )
