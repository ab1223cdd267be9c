"""HTTP middleware for the API application."""
import logging

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger(__name__)

DEFAULT_ERROR_STATUS = 500
DEFAULT_ERROR_MESSAGE = "Internal Server Error"


def error_status(exc: Exception) -> int:
    """Status code carried by the error, or 500."""
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code <= 599:
        return status_code
    return DEFAULT_ERROR_STATUS


def error_message(exc: Exception) -> str:
    """Message carried by the error, or the generic 500 text."""
    return str(exc) or DEFAULT_ERROR_MESSAGE


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Render errors raised by route handlers as plain-text responses.

    The status comes from the error's ``status_code`` (500 if it has none) and
    the body is the error message. HTTPException and request validation errors
    never reach here; FastAPI turns them into JSON responses further in.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Run the downstream handler and convert any error it raises."""
        try:
            return await call_next(request)
        except Exception as exc:
            status_code = error_status(exc)
            if status_code >= 500:
                logger.exception(
                    "Unhandled error on %s %s", request.method, request.url.path,
                )
            else:
                logger.info(
                    "%s %s failed with %s: %s",
                    request.method, request.url.path, status_code, exc,
                )
            return PlainTextResponse(error_message(exc), status_code=status_code)
