"""
Health check routes for monitoring and service discovery.
Provides endpoints to verify service health and database connectivity.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.core.config import settings
from storefront.core.logging import get_logger
from storefront.db.session import get_session

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict:
    """
    Basic health check endpoint.
    Returns service status and version information.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
    }


@router.get("/health/db")
def database_health_check(response: Response, session: Session = Depends(get_session)) -> dict:
    """
    Database health check endpoint.
    Verifies database connectivity by executing a simple query; answers 503 when it fails.
    """
    try:
        result = session.connection().execute(text("SELECT 1")).scalar()
        return {
            "status": "healthy",
            "database": "ok",
            "result": int(result) if result is not None else 1,
        }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e.__class__.__name__}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "unhealthy",
            "database": "error",
        }
