from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.config import settings
from app.db.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

SERVICE_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status", examples=["healthy"])
    service: str = Field(..., description="Service name", examples=["storefront-service"])
    version: str = Field(..., description="Service version", examples=["1.0.0"])


class DatabaseHealthResponse(BaseModel):
    status: str = Field(..., examples=["healthy"])
    database: str = Field(..., examples=["connected"])
    error: Optional[str] = None


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="""
    Health check endpoint for monitoring and load balancer health checks.

    Returns the service status, name, and version.
    """
)
async def health():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=SERVICE_VERSION
    )


@router.get(
    "/health/db",
    response_model=DatabaseHealthResponse,
    response_model_exclude_none=True,
    summary="Database health check"
)
def database_health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return DatabaseHealthResponse(status="healthy", database="connected")
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return DatabaseHealthResponse(status="unhealthy", database="disconnected", error=str(e))
