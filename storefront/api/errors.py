# storefront/api/errors.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.domain.errors import FunnelError, InternalError, ValidationError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _error_response(error: FunnelError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.kind, "message": error.message},
    )


async def funnel_error_handler(request: Request, exc: FunnelError) -> JSONResponse:
    return _error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg', 'invalid input')}" if field else "Invalid request body"
    return _error_response(ValidationError(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # nothing about the failure itself crosses the boundary
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _error_response(InternalError("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FunnelError, funnel_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
