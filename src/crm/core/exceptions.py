"""Domain exceptions and the handlers that render them with request_id."""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.crm.core.logging import get_logger

logger = get_logger(__name__)


class DomainError(Exception):
    """Base class for errors raised by services and repositories."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Entity does not exist for the resolved tenant."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """Entity state or uniqueness conflict."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleError(DomainError):
    """Request is well-formed but violates a business rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class DataSourceError(Exception):
    """Tenant data source could not be resolved or reached."""


class TenantNotFoundError(DataSourceError):
    """Tenant is missing from the application database."""


class DataSourceNotConfiguredError(DataSourceError):
    """Tenant has a data source row that cannot be turned into a connection."""


class CredentialEncryptionError(ValueError):
    """Encrypting or decrypting a stored credential failed."""


def _error_body(detail: object) -> dict[str, object]:
    return {"detail": detail, "request_id": correlation_id.get()}


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail),
            headers=exc.headers,
        )

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
        logger.info(
            "Domain error",
            error_type=type(exc).__name__,
            detail=exc.message,
            path=request.url.path,
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
