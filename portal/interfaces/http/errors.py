import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.errors import (
    PortalError, Unauthenticated, Forbidden, NotFound, Conflict, ValidationFailed,
)

logger = structlog.get_logger()

STATUS_BY_ERROR = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_400_BAD_REQUEST,
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
}


def status_for(exc: PortalError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _field_of(loc) -> str:
    # ("body", "password") -> "password"; ("query", "courseId") -> "courseId"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts)


def validation_details(errors) -> list[dict]:
    return [{"field": _field_of(e.get("loc", ())), "message": e.get("msg", "")} for e in errors]


async def portal_error_handler(request: Request, exc: PortalError):
    code = status_for(exc)
    body = {"error": exc.message}
    if isinstance(exc, ValidationFailed):
        body["details"] = exc.details
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("unhandled_portal_error", path=request.url.path, error=str(exc))
        body = {"error": "Internal server error"}
    return JSONResponse(status_code=code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": validation_details(exc.errors())},
    )


async def internal_error_handler(request: Request, exc: Exception):
    # наружу только общее сообщение, детали пишем в лог
    logger.error(
        "unhandled_error",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, internal_error_handler)
