"""Common schemas used across the API.

This module contains reusable schema components for consistent API responses.
"""

from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from fastapi import Path
from pydantic import BaseModel, Field

from .validators import MAX_ID


# Generic type for paginated item lists
T = TypeVar("T")

# Ids above MAX_ID cannot exist in the store; reject them before querying.
ResourceId = Annotated[int, Path(le=MAX_ID)]


class Page(BaseModel, Generic[T]):
    """
    Pagination envelope returned by every list endpoint.

    The pagination fields sit at the top level next to ``data`` rather than
    under a nested ``meta`` object.
    """
    data: List[T]
    current_page: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Total number of items matching the query")
    total_pages: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)


class ErrorResponse(BaseModel):
    """
    Error body shared by every 4xx/5xx response.

    ``timestamp`` is always formatted ``YYYY-MM-DD HH:MM:SS``.
    """
    message: str
    errors: Optional[Dict[str, List[str]]] = None
    status: int
    timestamp: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "message": "The code has already been taken.",
                    "errors": {"code": ["The code has already been taken."]},
                    "status": 422,
                    "timestamp": "2026-01-10 12:00:00",
                },
                {
                    "message": "Resource not found.",
                    "status": 404,
                    "timestamp": "2026-01-10 12:00:00",
                },
            ]
        }
    }


class MessageResponse(BaseModel):
    message: str


def error_responses(*codes: int) -> Dict[int | str, Dict[str, Any]]:
    """OpenAPI ``responses=`` mapping for the given error status codes."""
    return {code: {"model": ErrorResponse} for code in codes}
