"""Request/response logging middleware.

Logs one line per request (method, path, status, duration, client) and tags
it with a short request id that is echoed back in ``X-Request-ID``. Enabled
in development mode only.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("api.requests")

EXCLUDED_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
}

SENSITIVE_QUERY_KEYS = ("token", "password", "key")

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= 64 and incoming.isprintable():
        return incoming
    return uuid.uuid4().hex[:8]


def _describe_request(request: Request, request_id: str) -> str:
    parts = [f"[{request_id}]", f"{request.method} {request.url.path}"]
    if request.query_params:
        masked = {
            key: "***" if key.lower() in SENSITIVE_QUERY_KEYS else value
            for key, value in request.query_params.items()
        }
        parts.append(f"params={masked}")
    parts.append(f"client={request.client.host if request.client else 'unknown'}")
    return " ".join(parts)


def _level_for(method: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    # Reads are the bulk of catalog traffic
    return logging.DEBUG if method == "GET" else logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        request_id = _request_id(request)
        description = _describe_request(request, request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "%s - ERROR (%.3fs): %s", description, time.perf_counter() - started, exc
            )
            raise

        logger.log(
            _level_for(request.method, response.status_code),
            "%s - %s (%.3fs)",
            description,
            response.status_code,
            time.perf_counter() - started,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def configure_request_logging(log_level: str = "INFO") -> None:
    """Give the request logger its own handler and level."""
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logger.addHandler(handler)
