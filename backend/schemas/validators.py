"""Shared Pydantic validators.

Keep these small and free of project imports so schema modules can reuse
them without introducing import cycles.
"""

import unicodedata
from typing import Annotated, Any, Optional

from pydantic import Field

# Largest value a signed 64-bit INTEGER column can hold
MAX_ID = 2**63 - 1

EntityId = Annotated[int, Field(ge=1, le=MAX_ID)]


def strip_invisible_edges(value: str) -> str:
    """
    Strip leading/trailing whitespace and Unicode format characters (Cf).

    This prevents visually-identical values like "\\u200bDress" from
    bypassing uniqueness checks on codes and emails.
    """
    if not isinstance(value, str):
        return value
    start = 0
    end = len(value)
    while start < end and (
        value[start].isspace() or unicodedata.category(value[start]) == "Cf"
    ):
        start += 1
    while end > start and (
        value[end - 1].isspace() or unicodedata.category(value[end - 1]) == "Cf"
    ):
        end -= 1
    return value[start:end]


def ensure_utf8_encodable(value: str) -> str:
    """
    Reject strings that cannot be encoded to UTF-8 (e.g., unpaired surrogates).

    Unpaired surrogates can enter via JSON escapes like "\\uD800" and later
    crash response serialization.
    """
    if not isinstance(value, str):
        return value
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError("The value contains invalid Unicode characters.")
    return value


def required_text(value: Any, field: str) -> Any:
    """Normalize a required text field; blank or null is rejected."""
    if value is None:
        raise ValueError(f"The {field} field is required.")
    if isinstance(value, str):
        normalized = strip_invisible_edges(value)
        if not normalized:
            raise ValueError(f"The {field} field is required.")
        return ensure_utf8_encodable(normalized)
    return value


def optional_text(value: Any) -> Optional[Any]:
    """Normalize a nullable text field; blank becomes None."""
    if value is None:
        return None
    if isinstance(value, str):
        normalized = strip_invisible_edges(value)
        if not normalized:
            return None
        return ensure_utf8_encodable(normalized)
    return value
