"""
Cloth type endpoints.

Create and update accept ``subcat_id``, the complete set of subcategory ids
the cloth type should be linked to. The field is optional: leaving it out (or
sending null) keeps the current links, ``[]`` removes them all. Field changes
and link changes are committed together.
"""

import logging
from typing import Dict, List, Optional

from api.errors import ValidationFailed
from db.database import get_db
from fastapi import APIRouter, Depends, Response, status
from schemas.cloth_type import ClothTypeCreate, ClothTypeResponse, ClothTypeUpdate
from schemas.common import Page, ResourceId, error_responses
from services.activity_log import ActivityLogService, loggable_attributes
from services.auth import RequestContext, get_request_context
from services.csv_export import ClothTypeExporter
from services.pagination import PageParams, page_params
from services.relationship_sync import linked_subcategory_ids, sync_subcategories
from services.repository import ClothTypeRepository, SubcategoryRepository, write_transaction
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/cloth-types",
    tags=["cloth-types"],
    responses=error_responses(401),
)
logger = logging.getLogger(__name__)


async def _validate(
    db: AsyncSession,
    *,
    code: Optional[str],
    subcat_ids: Optional[List[int]],
    exclude_id: Optional[int] = None,
) -> None:
    """Uniqueness of ``code`` and existence of every requested subcategory."""
    errors: Dict[str, List[str]] = {}

    if code is not None and await ClothTypeRepository(db).code_taken(code, exclude_id=exclude_id):
        errors["code"] = ["The code has already been taken."]

    if subcat_ids:
        missing = set(await SubcategoryRepository(db).missing_ids(subcat_ids))
        for index, subcategory_id in enumerate(subcat_ids):
            if subcategory_id in missing:
                errors[f"subcat_id.{index}"] = [f"The selected subcat_id.{index} is invalid."]

    if errors:
        raise ValidationFailed.for_fields(errors)


async def _load(db: AsyncSession, cloth_type_id: int) -> ClothTypeResponse:
    cloth_type = await ClothTypeRepository(db).get_or_fail(
        cloth_type_id, load=ClothTypeRepository.WITH_SUBCATEGORIES
    )
    return ClothTypeResponse.model_validate(cloth_type)


@router.get("", response_model=Page[ClothTypeResponse])
async def list_cloth_types(
    params: PageParams = Depends(page_params),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Paginated cloth types, newest first, with their subcategories."""
    return await ClothTypeRepository(db).list_page(
        params,
        load=ClothTypeRepository.WITH_SUBCATEGORIES,
        transform=ClothTypeResponse.model_validate,
    )


@router.get("/export")
async def export_cloth_types(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    cloth_types = await ClothTypeRepository(db).all(load=ClothTypeRepository.WITH_SUBCATEGORIES)
    return ClothTypeExporter().response(cloth_types)


@router.get(
    "/{cloth_type_id}",
    response_model=ClothTypeResponse,
    responses=error_responses(404),
)
async def get_cloth_type(
    cloth_type_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    return await _load(db, cloth_type_id)


@router.post(
    "",
    response_model=ClothTypeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(422),
)
async def create_cloth_type(
    payload: ClothTypeCreate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    await _validate(db, code=payload.code, subcat_ids=payload.subcat_id)

    async with write_transaction(db, unique_field="code", label="cloth type"):
        cloth_type = await ClothTypeRepository(db).create(**payload.fields())
        if payload.subcat_id:
            await sync_subcategories(db, cloth_type.id, payload.subcat_id)

        await ActivityLogService(db).created(
            context, cloth_type, {"subcat_id": sorted(payload.subcat_id or [])}
        )

    logger.info("Cloth type %s created by user %s", cloth_type.id, context.user_id)
    return await _load(db, cloth_type.id)


@router.put(
    "/{cloth_type_id}",
    response_model=ClothTypeResponse,
    responses=error_responses(404, 422),
)
async def update_cloth_type(
    cloth_type_id: ResourceId,
    payload: ClothTypeUpdate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    repo = ClothTypeRepository(db)
    cloth_type = await repo.get_or_fail(cloth_type_id)

    fields = payload.fields()
    await _validate(
        db,
        code=fields.get("code"),
        subcat_ids=payload.subcat_id if payload.subcat_id_supplied else None,
        exclude_id=cloth_type.id,
    )

    async with write_transaction(db, unique_field="code", label="cloth type"):
        old_values = loggable_attributes(cloth_type)
        await repo.update(cloth_type, fields)
        new_values = loggable_attributes(cloth_type)

        if payload.subcat_id_supplied:
            old_values["subcat_id"] = await linked_subcategory_ids(db, cloth_type.id)
            result = await sync_subcategories(db, cloth_type.id, payload.subcat_id)
            new_values["subcat_id"] = sorted(payload.subcat_id)
            if result.changed:
                logger.info(
                    "Cloth type %s links changed: +%s -%s",
                    cloth_type.id,
                    result.attached,
                    result.detached,
                )

        await ActivityLogService(db).updated(context, cloth_type, old_values, new_values)

    return await _load(db, cloth_type_id)


@router.delete(
    "/{cloth_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=error_responses(404),
)
async def delete_cloth_type(
    cloth_type_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Delete a cloth type together with all of its subcategory links."""
    repo = ClothTypeRepository(db)
    cloth_type = await repo.get_or_fail(cloth_type_id)

    async with write_transaction(db, label="cloth type"):
        await ActivityLogService(db).deleted(context, cloth_type)
        await repo.delete(cloth_type)

    logger.info("Cloth type %s deleted by user %s", cloth_type_id, context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
