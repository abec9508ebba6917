"""Translate domain errors into HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.exceptions import AuthError, ValidationError

logger = logging.getLogger(__name__)


def _clean(message: str) -> str:
    return message.removeprefix("Value error, ")


def _field_name(loc) -> str:
    return ".".join(str(part) for part in loc if part not in ("body", "query"))


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    body = {"message": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        body["errors"] = exc.errors
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": _clean(error.get("msg", ""))}
        for error in exc.errors()
    ]
    missing = [error["field"] for error, raw in zip(errors, exc.errors()) if raw.get("type") == "missing"]

    if len(missing) > 1:
        message = "All fields are required"
    elif missing:
        message = f"{missing[0] or 'Request body'} is required"
    elif errors:
        message = errors[0]["message"]
    else:
        message = "Invalid input"

    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
