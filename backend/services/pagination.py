"""Page/per_page query parameters and the list envelope."""

import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from fastapi import Query
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from config import get_settings
from schemas.common import Page
from schemas.validators import MAX_ID

settings = get_settings()


@dataclass
class PageParams:
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def page_params(
    # Keeps the computed offset inside a 64-bit integer
    page: int = Query(1, ge=1, le=MAX_ID // settings.MAX_PER_PAGE),
    per_page: int = Query(settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
) -> PageParams:
    return PageParams(page=page, per_page=per_page)


def total_pages(total: int, per_page: int) -> int:
    """At least one page, even when there are no items."""
    return max(math.ceil(total / per_page), 1)


async def paginate(
    db: AsyncSession,
    base_query: Select,
    params: PageParams,
    *,
    model: Any,
    load: Sequence[Any] = (),
    transform: Callable[[Any], Any] = lambda item: item,
) -> Page:
    """
    Count ``base_query``, then fetch one page of it newest first.

    ``load`` holds loader options (``selectinload(...)``) applied to the page
    query only; the count query stays a plain subquery.
    """
    count_query = select(func.count()).select_from(base_query.subquery())
    total = (await db.execute(count_query)).scalar_one()

    query = (
        base_query.options(*load)
        .order_by(desc(model.created_at), desc(model.id))
        .offset(params.offset)
        .limit(params.per_page)
    )
    result = await db.execute(query)
    items = result.scalars().all()

    return Page(
        data=[transform(item) for item in items],
        current_page=params.page,
        total=total,
        total_pages=total_pages(total, params.per_page),
        per_page=params.per_page,
    )
