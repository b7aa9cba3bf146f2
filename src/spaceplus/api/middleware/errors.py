"""Consistent JSON error responses.

Every error leaves the API in the same envelope:

    {"success": false, "error": "<code>", "message": "<text>",
     "request_id": "<id>", "detail": {...}}

``request_id`` and ``detail`` are present only when known. Handlers are
registered for APIError, HTTPException and request validation errors;
ErrorHandlerMiddleware turns anything else into a generic 500 after logging
it.
"""

import logging
from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from spaceplus.api.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)


class APIError(Exception):
    """An error the API reports to the client as-is.

    Subclasses fix ``error`` and ``status_code``; raise APIError directly for
    one-off codes such as ``APIError("conflict", "Slug taken", 409)``.
    """

    error = "bad_request"
    status_code = 400

    def __init__(
        self,
        error: str | None = None,
        message: str = "",
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        if error is not None:
            self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        self.detail = detail
        super().__init__(message)


class NotFoundError(APIError):
    error = "not_found"
    status_code = 404

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(message=f"{resource} not found: {identifier}")


class ValidationAPIError(APIError):
    error = "validation_error"

    def __init__(self, message: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, detail=detail)


class AuthenticationError(APIError):
    error = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message=message)


class AuthorizationError(APIError):
    error = "forbidden"
    status_code = 403

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message=message)


def error_code_for(status_code: int) -> str:
    """``404`` -> ``not_found``; unknown codes become ``http_error``."""
    try:
        return HTTPStatus(status_code).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "http_error"


def build_error_response(
    error: str,
    message: str,
    status_code: int,
    detail: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": error, "message": message}
    request_id = get_request_id()
    if request_id:
        body["request_id"] = request_id
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    return build_error_response(exc.error, exc.message, exc.status_code, exc.detail)


async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return build_error_response(
        error_code_for(exc.status_code),
        str(exc.detail),
        exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request validation failures are client errors (400), not 422."""
    return build_error_response(
        "validation_error",
        "Request validation failed",
        400,
        detail={"errors": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence: log the traceback, answer a bare 500."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except APIError as exc:
            return await api_error_handler(request, exc)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return build_error_response("internal_error", "An internal error occurred", 500)
