"""CORS and response timing for every registry response."""

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response

from buildsync.web.error_handlers import general_exception_handler

logger = structlog.get_logger(__name__)

ALLOW_METHODS = "GET, POST, DELETE, OPTIONS"
ALLOW_HEADERS = "Content-Type"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"


def cors_headers(request: Request, allowed_origins: list[str]) -> dict[str, str]:
    """CORS headers for a request; any origin is allowed when ``"*"`` is configured."""
    if "*" in allowed_origins:
        origin = "*"
    else:
        request_origin = request.headers.get("origin", "")
        origin = request_origin if request_origin in allowed_origins else ""

    headers = {"Access-Control-Allow-Methods": ALLOW_METHODS, "Access-Control-Allow-Headers": ALLOW_HEADERS}
    if origin:
        headers["Access-Control-Allow-Origin"] = origin
        if origin != "*":
            headers["Vary"] = "Origin"
    return headers


def add_cors_and_timing(app: FastAPI, allowed_origins: list[str]) -> None:
    """Answer every OPTIONS request with 204 and stamp CORS and timing headers on all other responses, 500s included.

    Starlette's CORSMiddleware answers preflights with 200 and a body and leaves
    plain OPTIONS requests to the router, so this is handled here instead.
    """

    @app.middleware("http")
    async def cors_and_timing(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        started = time.perf_counter()
        headers = cors_headers(request, allowed_origins)

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        try:
            response = await call_next(request)
        except Exception as e:
            # Uncaught errors get their 500 envelope inside the CORS layer
            response = await general_exception_handler(request, e)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        response.headers.update(headers)
        response.headers[RESPONSE_TIME_HEADER] = str(duration_ms)
        logger.debug(
            "http_request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        return response
