"""API error taxonomy and the handlers that render it as ``{"error": ...}``."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base error carrying an HTTP status and a user-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(APIError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class BadRequest(APIError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class InternalError(APIError):
    pass


def error_response(exc: APIError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse({"error": exc.message}, status_code=exc.status_code, headers=headers)


async def _handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    return error_response(exc)


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    # Starlette runs this inside ServerErrorMiddleware, which re-raises after
    # the response is sent, so the server logs the traceback a second time.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(InternalError())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, _handle_api_error)
    app.add_exception_handler(Exception, _handle_unexpected)
