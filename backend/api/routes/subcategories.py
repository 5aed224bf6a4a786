import logging
from typing import List, Optional

from api.errors import ValidationFailed
from db.database import get_db
from fastapi import APIRouter, Depends, Query, Response, status
from schemas.category import SubcategoryCreate, SubcategoryResponse, SubcategoryUpdate
from schemas.common import Page, ResourceId, error_responses
from schemas.validators import MAX_ID
from services.activity_log import ActivityLogService, loggable_attributes
from services.auth import RequestContext, get_request_context
from services.csv_export import SubcategoryExporter
from services.pagination import PageParams, page_params
from services.repository import CategoryRepository, SubcategoryRepository, write_transaction
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/subcategories",
    tags=["subcategories"],
    responses=error_responses(401),
)
logger = logging.getLogger(__name__)


def parse_id_filter(raw_values: Optional[List[str]]) -> List[int]:
    """
    Accept ``?category_id=1&category_id=2`` as well as ``?category_id=1,2``.

    Values that are not positive integers are ignored.
    """
    ids: List[int] = []
    for raw in raw_values or []:
        for part in raw.split(","):
            part = part.strip()
            # str.isdigit also accepts superscripts and other non-ASCII digits
            if not (part.isascii() and part.isdigit()) or len(part) > len(str(MAX_ID)):
                continue
            value = int(part)
            if 0 < value <= MAX_ID and value not in ids:
                ids.append(value)
    return ids


async def _ensure_category_exists(db: AsyncSession, category_id: int) -> None:
    if await CategoryRepository(db).missing_ids([category_id]):
        raise ValidationFailed.for_field(
            "category_id", "The selected category_id is invalid."
        )


@router.get("", response_model=Page[SubcategoryResponse])
async def list_subcategories(
    category_id: Optional[List[str]] = Query(None),
    params: PageParams = Depends(page_params),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    repo = SubcategoryRepository(db)
    return await repo.list_page(
        params,
        query=repo.query_for_categories(parse_id_filter(category_id)),
        load=SubcategoryRepository.WITH_RELATIONS,
        transform=SubcategoryResponse.model_validate,
    )


@router.get("/export")
async def export_subcategories(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    subcategories = await SubcategoryRepository(db).all(load=SubcategoryRepository.WITH_RELATIONS)
    return SubcategoryExporter().response(subcategories)


@router.get(
    "/{subcategory_id}",
    response_model=SubcategoryResponse,
    responses=error_responses(404),
)
async def get_subcategory(
    subcategory_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    subcategory = await SubcategoryRepository(db).get_or_fail(
        subcategory_id, load=SubcategoryRepository.WITH_RELATIONS
    )
    return SubcategoryResponse.model_validate(subcategory)


@router.post(
    "",
    response_model=SubcategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(422),
)
async def create_subcategory(
    payload: SubcategoryCreate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    await _ensure_category_exists(db, payload.category_id)

    repo = SubcategoryRepository(db)
    async with write_transaction(db, label="subcategory"):
        subcategory = await repo.create(**payload.model_dump())
        await ActivityLogService(db).created(context, subcategory)

    subcategory = await repo.get_or_fail(subcategory.id, load=SubcategoryRepository.WITH_RELATIONS)
    return SubcategoryResponse.model_validate(subcategory)


@router.put(
    "/{subcategory_id}",
    response_model=SubcategoryResponse,
    responses=error_responses(404, 422),
)
async def update_subcategory(
    subcategory_id: ResourceId,
    payload: SubcategoryUpdate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    repo = SubcategoryRepository(db)
    subcategory = await repo.get_or_fail(subcategory_id)

    fields = payload.model_dump(exclude_unset=True)
    if "category_id" in fields:
        await _ensure_category_exists(db, fields["category_id"])

    async with write_transaction(db, label="subcategory"):
        old_values = loggable_attributes(subcategory)
        await repo.update(subcategory, fields)
        await ActivityLogService(db).updated(
            context, subcategory, old_values, loggable_attributes(subcategory)
        )

    subcategory = await repo.get_or_fail(subcategory_id, load=SubcategoryRepository.WITH_RELATIONS)
    return SubcategoryResponse.model_validate(subcategory)


@router.delete(
    "/{subcategory_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=error_responses(404),
)
async def delete_subcategory(
    subcategory_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a subcategory; its cloth type links are removed with it."""
    repo = SubcategoryRepository(db)
    subcategory = await repo.get_or_fail(subcategory_id)

    async with write_transaction(db, label="subcategory"):
        await ActivityLogService(db).deleted(context, subcategory)
        await repo.delete(subcategory)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
