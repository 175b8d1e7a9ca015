import logging
import traceback
from typing import Any, Dict, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InsufficientFundsError,
    InternalError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger("swapapi")

# The only place where a domain error is given a transport status.
STATUS_BY_ERROR: Dict[Type[DomainError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InsufficientFundsError: 400,
    InternalError: 500,
}


def status_for(exc: DomainError) -> int:
    for error_class in type(exc).__mro__:
        if error_class in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_class]
    return 500


def error_envelope(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "errors": [{"code": code, "message": message, "details": details or {}}],
    }


def _request_context(request: Request) -> Dict[str, Any]:
    client = request.client.host if request.client else "-"
    return {
        "method": request.method,
        "url": str(request.url),
        "client": client,
    }


async def handle_domain_error(request: Request, exc: DomainError):
    ctx = _request_context(request)
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"[{type(exc).__name__}] {ctx['method']} {ctx['url']} from {ctx['client']} -> {status_code}: {exc.message}"
    )
    if isinstance(exc, InternalError):
        # Never leak the underlying storage message
        internal = InternalError()
        content = error_envelope(internal.error_code, internal.message)
    else:
        content = error_envelope(exc.error_code, exc.message, exc.details)
    return JSONResponse(status_code=status_code, content=content)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    ctx = _request_context(request)
    error_msg = f"[HTTPException] {ctx['method']} {ctx['url']} from {ctx['client']} -> {exc.status_code}: {exc.detail}"
    if exc.status_code >= 500:
        logger.error(error_msg)
    else:
        logger.warning(error_msg)

    code = {401: "AUTH_001", 403: "AUTH_002", 404: "NOT_FOUND_001"}.get(
        exc.status_code, "HTTP_ERROR"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    ctx = _request_context(request)
    logger.warning(
        f"[RequestValidationError] {ctx['method']} {ctx['url']} from {ctx['client']} -> 400: {exc.errors()}"
    )
    content = error_envelope(
        ValidationError.error_code,
        "Validation failed",
        {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]},
    )
    return JSONResponse(status_code=400, content=content)


async def handle_unexpected_error(request: Request, exc: Exception):
    ctx = _request_context(request)

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {ctx['method']} {ctx['url']} from {ctx['client']}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    internal = InternalError()
    return JSONResponse(
        status_code=500, content=error_envelope(internal.error_code, internal.message)
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
