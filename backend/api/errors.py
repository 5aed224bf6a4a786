"""
API error taxonomy and the exception handlers that render it.

Every 4xx/5xx response has the same body::

    {"message": str, "errors": {field: [str, ...]}?, "status": int,
     "timestamp": "YYYY-MM-DD HH:MM:SS"}
"""

import logging
import re
from datetime import datetime
from http import HTTPStatus
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# starlette.status deprecates its HTTP_422_* names
HTTP_422 = int(HTTPStatus.UNPROCESSABLE_ENTITY)

MAX_ERROR_STRING_CHARS = 400
MAX_ERROR_FIELDS = 50

_SUSPICIOUS_ERROR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"traceback", re.IGNORECASE),
    re.compile(r"\bfile\s+\".*?\.py\"", re.IGNORECASE),
    re.compile(r"sqlalchemy", re.IGNORECASE),
    re.compile(r"sqlite3|asyncpg", re.IGNORECASE),
    re.compile(r"\b(operational|integrity)error\b", re.IGNORECASE),
    re.compile(r"\[sql:", re.IGNORECASE),
)


class ApiError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error."

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)


class ValidationFailed(ApiError):
    status_code = HTTP_422
    default_message = "The given data was invalid."

    @classmethod
    def for_fields(cls, errors: Dict[str, List[str]]) -> "ValidationFailed":
        return cls(summarize_errors(errors), errors=errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls.for_fields({field: [message]})


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthenticated."

    def __init__(self, message: Optional[str] = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class ServerError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error."


def now_timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def error_body(
    status_code: int, message: str, errors: Optional[Dict[str, List[str]]] = None
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message}
    if errors:
        body["errors"] = errors
    body["status"] = status_code
    body["timestamp"] = now_timestamp()
    return body


def summarize_errors(errors: Dict[str, List[str]]) -> str:
    """First message, plus a count of the remaining ones."""
    messages = [m for msgs in errors.values() for m in msgs]
    if not messages:
        return ValidationFailed.default_message
    remaining = len(messages) - 1
    if remaining <= 0:
        return messages[0]
    suffix = "error" if remaining == 1 else "errors"
    return f"{messages[0]} (and {remaining} more {suffix})"


def _safe_text(value: Any) -> str:
    text = str(value)
    text = text.encode("utf-8", errors="replace").decode("utf-8", errors="replace")
    if len(text) > MAX_ERROR_STRING_CHARS:
        return f"{text[:MAX_ERROR_STRING_CHARS]}…(truncated)"
    return text


def sanitize_public_message(message: Optional[str], fallback: str) -> str:
    """Drop messages that look like internal details (SQL, tracebacks, paths)."""
    if not message:
        return fallback
    safe = re.sub(r"\s+", " ", _safe_text(message)).strip()
    if not safe or any(p.search(safe) for p in _SUSPICIOUS_ERROR_PATTERNS):
        return fallback
    return safe


def _field_path(loc: tuple) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts) or "body"


def _describe(error: Dict[str, Any], field: str) -> str:
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}
    if kind == "missing":
        return f"The {field} field is required."
    if kind in ("int_type", "int_parsing", "int_from_float"):
        return f"The {field} field must be an integer."
    if kind == "string_type":
        return f"The {field} field must be a string."
    if kind == "list_type":
        return f"The {field} field must be an array."
    if kind == "string_too_short":
        return f"The {field} field must be at least {ctx.get('min_length')} characters."
    if kind == "string_too_long":
        return f"The {field} field must not be greater than {ctx.get('max_length')} characters."
    if kind in ("greater_than_equal", "greater_than"):
        return f"The {field} field must be at least {ctx.get('ge', ctx.get('gt'))}."
    if kind in ("less_than_equal", "less_than"):
        return f"The {field} field must not be greater than {ctx.get('le', ctx.get('lt'))}."
    if kind == "value_error" and "not a valid email address" in str(error.get("msg", "")):
        return f"The {field} field must be a valid email address."
    if kind == "json_invalid":
        return "The request body is not valid JSON."
    message = str(error.get("msg", "Invalid value."))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return message


def format_validation_errors(raw_errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Collapse pydantic/FastAPI error dicts into ``{field: [message, ...]}``."""
    errors: Dict[str, List[str]] = {}
    for error in raw_errors:
        field = _safe_text(_field_path(tuple(error.get("loc", ()))))
        message = _safe_text(_describe(error, field))
        bucket = errors.setdefault(field, [])
        if message not in bucket:
            bucket.append(message)
        if len(errors) >= MAX_ERROR_FIELDS:
            break
    return errors


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.errors),
        headers=exc.headers,
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = format_validation_errors(list(exc.errors()))
    return JSONResponse(
        status_code=HTTP_422,
        content=error_body(
            HTTP_422, summarize_errors(errors), errors
        ),
    )


def _reason_phrase(status_code: int) -> Optional[str]:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return None


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    fallback = {
        status.HTTP_401_UNAUTHORIZED: Unauthenticated.default_message,
        status.HTTP_404_NOT_FOUND: NotFound.default_message,
        status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed.",
    }.get(exc.status_code, "Request failed.")
    detail = exc.detail if isinstance(exc.detail, str) else None
    if detail == _reason_phrase(exc.status_code):
        detail = None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, sanitize_public_message(detail, fallback)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, ServerError.default_message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
