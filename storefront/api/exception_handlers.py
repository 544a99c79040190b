"""
Centralized exception handlers for the FastAPI application.

Every failure is rendered in one format:

    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE",
        ...optional details
    }

Internal errors are logged with their traceback; clients only see a
generic message.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.core.errors import ErrorCode, StorefrontError
from storefront.core.logging import get_logger

logger = get_logger(__name__)


def _create_error_response(
    status_code: int,
    message: str,
    code: ErrorCode,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content = {"detail": message, "code": code.value}
    if details:
        content.update(details)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance
    """

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}")
        return _create_error_response(
            status_code=exc.status_code,
            message=exc.message,
            code=exc.code,
            details=exc.details,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return _create_error_response(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Request validation failed",
            code=ErrorCode.VALIDATION_ERROR,
            details={"errors": jsonable_encoder(errors)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Internal server error",
            code=ErrorCode.INTERNAL,
        )
