from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskboard.logs.server_log import api_logger
from taskboard.logs.debug_log import debug_logger


def format_validation_error(exc: RequestValidationError) -> str:
    """Build a field-level message from the first validation error"""
    errors = exc.errors()
    if not errors:
        return "Bad request"

    error = errors[0]
    # Drop the "body"/"query"/"path" prefix from the location
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    message = error.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = format_validation_error(exc)
    debug_logger.warning(f"Validation failed for {request.method} {request.url.path}: {detail}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    debug_logger.log_exception(f"Unhandled error in {request.method} {request.url.path}")
    api_logger.error(f"Unhandled error in {request.method} {request.url.path}: {type(exc).__name__}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
