"""Maps exceptions raised while handling a request to HTTP responses."""

import logfire

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from security.exceptions import AuthenticationError, AuthenticationUnavailable

VALUE_ERROR_PREFIX = "Value error, "


REQUEST_PARTS = ("body", "query", "header", "cookie", "path")


def _field_name(location: tuple) -> str:
    """Turns a pydantic error location such as ("body", "username") into "username"."""
    if location and location[0] in REQUEST_PARTS:
        location = location[1:]
    return ".".join(str(part) for part in location) or "body"


async def handle_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    if isinstance(exc, AuthenticationUnavailable):
        logfire.error(f"Authentication unavailable on {request.url.path}: {repr(exc.__cause__)}")
    else:
        logfire.info(f"Unauthorized request to {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}

    for error in exc.errors():
        message = str(error.get("msg", "Invalid value"))
        errors.setdefault(_field_name(tuple(error.get("loc", ()))), message.removeprefix(VALUE_ERROR_PREFIX))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logfire.exception(f"Unexpected error on {request.method} {request.url.path}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthenticationError, handle_authentication_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
