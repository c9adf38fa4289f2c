from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.exceptions import ShopAccountsError
from app.schemas.response import ErrorResponse
from app.core.config import settings

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, code: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            ErrorResponse(message=message, code=code, details=details).model_dump()
        )
    )


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(ShopAccountsError)
    async def shopaccounts_exception_handler(request: Request, exc: ShopAccountsError):
        if exc.status_code >= 500:
            logger.error(
                f"{exc.code}: {exc.message}",
                extra={"method": request.method, "path": request.url.path}
            )
        else:
            logger.info(
                f"{exc.code}: {exc.message}",
                extra={"method": request.method, "path": request.url.path, "status_code": exc.status_code}
            )
        return _error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, etc.)
        """
        return _error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles Pydantic validation errors as 400s.
        """
        errors = exc.errors()
        message = "Input validation failed"
        if errors:
            field = ".".join(str(part) for part in errors[0].get("loc", ())[1:])
            message = f"{field}: {errors[0].get('msg')}" if field else str(errors[0].get("msg"))
        return _error_response(400, message, "VALIDATION_ERROR", errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)

        return _error_response(500, message, "INTERNAL_ERROR")
