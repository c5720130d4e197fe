import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from buildsync.errors import NotFoundError

logger = logging.getLogger(__name__)


def create_json_error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    """Create the ``{success: false, error, details?}`` envelope shared by all failures."""
    content: dict[str, object] = {"success": False, "error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    # InvalidArgumentError and any other UserError subclass are client mistakes
    status_code = 404 if isinstance(exc, NotFoundError) else 400

    return create_json_error_response(status_code=status_code, error=str(exc))


async def transient_error_handler(_: Request, exc: Exception) -> Response:
    """Backend unreachable, timed out, or kept conflicting (503)."""
    logger.warning("Transient backend failure: %s", exc)
    return create_json_error_response(status_code=503, error="Service Unavailable", details=str(exc))


async def request_validation_handler(_: Request, exc: Exception) -> Response:
    """Handle malformed requests rejected by FastAPI before reaching a route."""
    details = str(exc.errors()) if isinstance(exc, RequestValidationError) else str(exc)
    return create_json_error_response(status_code=400, error="Invalid request", details=details)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle routing errors such as unknown paths (404) and wrong methods (405)."""
    if not isinstance(exc, StarletteHTTPException):
        return await general_exception_handler(request, exc)
    if exc.status_code == 404:
        logger.warning("Not found: %s %s", request.method, request.url.path)
        return create_json_error_response(status_code=404, error="Not Found")
    return create_json_error_response(status_code=exc.status_code, error=str(exc.detail))


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(status_code=500, error="Internal Server Error", details=str(exc))
