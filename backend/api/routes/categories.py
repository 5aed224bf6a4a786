import logging

from db.database import get_db
from fastapi import APIRouter, Depends, Response, status
from schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from schemas.common import Page, ResourceId, error_responses
from services.activity_log import ActivityLogService, loggable_attributes
from services.auth import RequestContext, get_request_context
from services.csv_export import CategoryExporter
from services.pagination import PageParams, page_params
from services.repository import CategoryRepository, write_transaction
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
    responses=error_responses(401),
)
logger = logging.getLogger(__name__)


@router.get("", response_model=Page[CategoryResponse])
async def list_categories(
    params: PageParams = Depends(page_params),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Paginated categories, newest first, with their subcategories."""
    return await CategoryRepository(db).list_page(
        params,
        load=CategoryRepository.WITH_SUBCATEGORIES,
        transform=CategoryResponse.model_validate,
    )


@router.get("/export")
async def export_categories(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    categories = await CategoryRepository(db).all(load=CategoryRepository.WITH_SUBCATEGORIES)
    return CategoryExporter().response(categories)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses=error_responses(404),
)
async def get_category(
    category_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryRepository(db).get_or_fail(
        category_id, load=CategoryRepository.WITH_SUBCATEGORIES
    )
    return CategoryResponse.model_validate(category)


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(422),
)
async def create_category(
    payload: CategoryCreate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    repo = CategoryRepository(db)
    async with write_transaction(db, label="category"):
        category = await repo.create(**payload.model_dump())
        await ActivityLogService(db).created(context, category)

    logger.info("Category %s created by user %s", category.id, context.user_id)
    category = await repo.get_or_fail(category.id, load=CategoryRepository.WITH_SUBCATEGORIES)
    return CategoryResponse.model_validate(category)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses=error_responses(404, 422),
)
async def update_category(
    category_id: ResourceId,
    payload: CategoryUpdate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    repo = CategoryRepository(db)
    category = await repo.get_or_fail(category_id)

    async with write_transaction(db, label="category"):
        old_values = loggable_attributes(category)
        await repo.update(category, payload.model_dump(exclude_unset=True))
        await ActivityLogService(db).updated(
            context, category, old_values, loggable_attributes(category)
        )

    category = await repo.get_or_fail(category_id, load=CategoryRepository.WITH_SUBCATEGORIES)
    return CategoryResponse.model_validate(category)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=error_responses(404),
)
async def delete_category(
    category_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a category; its subcategories and their cloth type links go with it."""
    repo = CategoryRepository(db)
    category = await repo.get_or_fail(category_id)

    async with write_transaction(db, label="category"):
        await ActivityLogService(db).deleted(context, category)
        await repo.delete(category)

    logger.info("Category %s deleted by user %s", category_id, context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
