"""Global exception handlers that map domain exceptions to HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from app.core.config import settings
from app.errors import (
    UNAUTHORIZED,
    VALIDATION_ERROR,
    DomainValidationError,
    NotFoundError,
    RedirectError,
    UnauthorizedError,
)
from app.schemas.error import ErrorResponse
from app.services.session import set_flash


def _error_response(
    status_code: int,
    detail: str,
    code: str,
    errors: dict[str, list[str]] | None = None,
) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=detail, code=code, errors=errors or None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _redirect(request: Request, location: str, kind: str | None, message: str | None) -> RedirectResponse:
    """303 to location, leaving the message in the session for the next page."""
    if kind and message:
        set_flash(request.session, kind, message)
    return RedirectResponse(location, status_code=status.HTTP_303_SEE_OTHER)


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        str(exc),
        VALIDATION_ERROR,
        exc.errors,
    )


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(
        status.HTTP_401_UNAUTHORIZED,
        str(exc),
        UNAUTHORIZED,
    )


def not_found_error_handler(request: Request, exc: NotFoundError) -> RedirectResponse:
    return _redirect(request, settings.root_url, "error", str(exc))


def redirect_error_handler(request: Request, exc: RedirectError) -> RedirectResponse:
    return _redirect(request, exc.location, exc.flash_kind, exc.flash_message)


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(RedirectError, redirect_error_handler)
