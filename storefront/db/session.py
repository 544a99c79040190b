"""
Database engine and session management using SQLModel.

The engine is created once per process by the application lifespan and
kept on ``app.state.engine``; routes receive sessions through the
``get_session`` dependency.
"""

from functools import wraps
from typing import Any, Callable, Generator, TypeVar

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import Session, create_engine

from storefront.core.config import settings
from storefront.core.errors import TransientError
from storefront.core.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def create_db_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """
    Create a database engine with bounded connect, checkout and statement time.

    Args:
        database_url: Override for the configured database URI
        echo: Override for SQL echo (defaults to DEBUG)

    Returns:
        SQLAlchemy engine
    """
    url = database_url or settings.SQLALCHEMY_DATABASE_URI
    echo = settings.DEBUG if echo is None else echo
    timeout = settings.DB_TIMEOUT_SECONDS

    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            connect_args={
                "check_same_thread": False,  # Allow multi-threading for SQLite
                "timeout": timeout,  # Seconds to wait on a locked database
            },
        )

    # PostgreSQL configuration with connection pooling
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=timeout,
        connect_args={
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}",
        },
    )


def get_session(request: Request) -> Generator[Session, None, None]:
    """
    Dependency that provides a database session for FastAPI routes.

    Yields:
        Database session bound to the application's engine
    """
    with Session(request.app.state.engine) as session:
        yield session


def translate_persistence_errors(func: F) -> F:
    """
    Translate driver timeouts and connection failures into TransientError.

    Raw driver errors never leave the service layer.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (OperationalError, PoolTimeoutError, DisconnectionError) as e:
            logger.error(f"Persistence unavailable in {func.__qualname__}: {e.__class__.__name__}")
            raise TransientError() from e

    return wrapper  # type: ignore[return-value]
