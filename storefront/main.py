"""
Main FastAPI application entry point.
Configures the application, middleware, and routes.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel

from storefront.api.exception_handlers import setup_exception_handlers
from storefront.api.routes import auth, health, maintenance, users
from storefront.core.config import settings
from storefront.core.errors import StorefrontError, TransientError
from storefront.core.logging import get_logger, setup_logging
from storefront.db.session import create_db_engine
from storefront.models.user import UserRole
from storefront.schemas.user import UserCreate
from storefront.services.user_service import UserService
from storefront.workers.tasks import schedule_refresh_token_sweep

setup_logging()
logger = get_logger(__name__)


def bootstrap_admin(engine: Engine) -> None:
    """Create the first admin account if it does not exist yet."""
    with Session(engine) as session:
        if UserService.get_by_email(session, settings.FIRST_SUPERUSER_EMAIL):
            return

        logger.info("Creating first admin user...")
        try:
            admin = UserCreate(
                username=settings.FIRST_SUPERUSER_USERNAME,
                email=settings.FIRST_SUPERUSER_EMAIL,
                password=settings.FIRST_SUPERUSER_PASSWORD,
                role=UserRole.ADMIN,
            )
            UserService.create(session, admin)
            logger.info(f"Admin user created: {settings.FIRST_SUPERUSER_EMAIL}")
        except (StorefrontError, ValidationError) as e:
            logger.error(f"Failed to create admin user: {e}")
            logger.warning("Continuing without bootstrap admin.")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan handler.
    Owns the database engine for the lifetime of the process.
    """
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")

    engine = create_db_engine()
    app.state.engine = engine

    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)

    if not settings.DISABLE_BOOTSTRAP_USERS:
        bootstrap_admin(engine)
    else:
        logger.info("User bootstrapping disabled (DISABLE_BOOTSTRAP_USERS=true)")

    try:
        sweep_job_id = schedule_refresh_token_sweep()
    except TransientError:
        logger.warning("Redis unavailable, refresh token sweep not scheduled")
    else:
        if sweep_job_id is None:
            logger.info("Scheduled refresh token sweep disabled")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    lifespan=lifespan,
)

setup_exception_handlers(app)

# Cookies carry the tokens, so credentials must be allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "content-type", "accept"],
)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(auth.router, prefix=settings.API_PREFIX)
app.include_router(users.router, prefix=settings.API_PREFIX)
app.include_router(maintenance.router, prefix=settings.API_PREFIX)
