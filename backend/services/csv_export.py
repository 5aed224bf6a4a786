"""
CSV exports.

Each exporter declares its heading row and how one entity maps to a row.
Rows are written with ``QUOTE_ALL`` and every cell passes through
``sanitize_csv_field`` so spreadsheet apps never evaluate exported text as a
formula.
"""

import csv
import io
import unicodedata
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from fastapi.responses import Response

from models import Category, ClothType, Subcategory, User

# Formula trigger characters used by spreadsheet apps.
CSV_INJECTION_CHARS = ("=", "+", "-", "@")

EXPORT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
FILENAME_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def _is_blank(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch) == "Cf"


def sanitize_csv_field(value: Any) -> str:
    """
    Sanitize a CSV field to prevent formula injection.

    Control and line-separator characters become spaces. Values whose first
    visible character is a formula trigger are prefixed with an apostrophe,
    as are values already guarded once (``'=...``) so the guard survives a
    round trip through a spreadsheet.
    """
    if value is None:
        return ""

    normalized = "".join(
        " " if unicodedata.category(ch) in ("Cc", "Zl", "Zp") else ch
        for ch in str(value)
    )

    idx = 0
    while idx < len(normalized) and _is_blank(normalized[idx]):
        idx += 1
    if idx >= len(normalized):
        return normalized

    first = normalized[idx]
    if first in CSV_INJECTION_CHARS:
        return "'" + normalized
    if first == "'":
        j = idx + 1
        while j < len(normalized) and _is_blank(normalized[j]):
            j += 1
        if j < len(normalized) and normalized[j] in CSV_INJECTION_CHARS:
            return "'" + normalized

    return normalized


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime(EXPORT_DATETIME_FORMAT) if value else ""


def join_names(items: Iterable[Any], attribute: str = "name") -> str:
    return ", ".join(str(getattr(item, attribute)) for item in items)


class CsvExporter:
    """Base exporter. Subclasses set ``resource``, ``headings`` and ``row``."""

    resource: str = "export"
    headings: Sequence[str] = ()

    def row(self, entity: Any) -> List[Any]:
        raise NotImplementedError

    def render(self, entities: Iterable[Any]) -> str:
        output = io.StringIO()
        writer = csv.writer(output, quoting=csv.QUOTE_ALL)
        writer.writerow(self.headings)
        for entity in entities:
            writer.writerow([sanitize_csv_field(cell) for cell in self.row(entity)])
        return output.getvalue()

    def filename(self, now: Optional[datetime] = None) -> str:
        stamp = (now or datetime.now()).strftime(FILENAME_TIMESTAMP_FORMAT)
        return f"{self.resource}_{stamp}.csv"

    def response(self, entities: Sequence[Any]) -> Response:
        return Response(
            content=self.render(entities),
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": f'attachment; filename="{self.filename()}"',
                "X-Total-Items": str(len(entities)),
            },
        )


class ClothTypeExporter(CsvExporter):
    resource = "cloth-types"
    headings = ("ID", "Code", "Name", "Description", "Subcategories", "Created At", "Updated At")

    def row(self, cloth_type: ClothType) -> List[Any]:
        return [
            cloth_type.id,
            cloth_type.code,
            cloth_type.name,
            cloth_type.description,
            join_names(cloth_type.subcategories),
            format_datetime(cloth_type.created_at),
            format_datetime(cloth_type.updated_at),
        ]


class CategoryExporter(CsvExporter):
    resource = "categories"
    headings = ("ID", "Name", "Description", "Subcategories", "Created At", "Updated At")

    def row(self, category: Category) -> List[Any]:
        return [
            category.id,
            category.name,
            category.description,
            join_names(category.subcategories),
            format_datetime(category.created_at),
            format_datetime(category.updated_at),
        ]


class SubcategoryExporter(CsvExporter):
    resource = "subcategories"
    headings = ("ID", "Name", "Description", "Category", "Created At", "Updated At")

    def row(self, subcategory: Subcategory) -> List[Any]:
        return [
            subcategory.id,
            subcategory.name,
            subcategory.description,
            subcategory.category.name if subcategory.category else "",
            format_datetime(subcategory.created_at),
            format_datetime(subcategory.updated_at),
        ]


class UserExporter(CsvExporter):
    resource = "users"
    headings = ("ID", "Name", "Email", "Roles", "Created At", "Updated At")

    def row(self, user: User) -> List[Any]:
        return [
            user.id,
            user.name,
            user.email,
            join_names(user.roles),
            format_datetime(user.created_at),
            format_datetime(user.updated_at),
        ]
