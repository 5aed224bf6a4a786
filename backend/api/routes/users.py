import logging
from typing import Optional

from api.errors import ValidationFailed
from db.database import get_db
from fastapi import APIRouter, Depends, Response, status
from schemas.common import Page, ResourceId, error_responses
from schemas.user import UserCreate, UserResponse, UserUpdate
from services.activity_log import ActivityLogService, loggable_attributes
from services.auth import RequestContext, get_request_context, hash_password
from services.csv_export import UserExporter
from services.pagination import PageParams, page_params
from services.repository import UserRepository, write_transaction
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses=error_responses(401),
)
logger = logging.getLogger(__name__)


async def _ensure_email_available(
    repo: UserRepository, email: str, exclude_id: Optional[int] = None
) -> None:
    if await repo.email_taken(email, exclude_id=exclude_id):
        raise ValidationFailed.for_field("email", "The email has already been taken.")


@router.get("", response_model=Page[UserResponse])
async def list_users(
    params: PageParams = Depends(page_params),
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    return await UserRepository(db).list_page(
        params,
        load=UserRepository.WITH_ROLES,
        transform=UserResponse.model_validate,
    )


@router.get("/export")
async def export_users(
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    users = await UserRepository(db).all(load=UserRepository.WITH_ROLES)
    return UserExporter().response(users)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses=error_responses(404),
)
async def get_user(
    user_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    user = await UserRepository(db).get_or_fail(user_id, load=UserRepository.WITH_ROLES)
    return UserResponse.model_validate(user)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(422),
)
async def create_user(
    payload: UserCreate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Create a user. The password is stored as a bcrypt hash only."""
    repo = UserRepository(db)
    await _ensure_email_available(repo, payload.email)

    async with write_transaction(db, unique_field="email", label="user"):
        user = await repo.create(
            name=payload.name,
            email=payload.email,
            password=hash_password(payload.password),
        )
        await ActivityLogService(db).created(context, user)

    logger.info("User %s created by user %s", user.id, context.user_id)
    user = await repo.get_or_fail(user.id, load=UserRepository.WITH_ROLES)
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses=error_responses(404, 422),
)
async def update_user(
    user_id: ResourceId,
    payload: UserUpdate,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Partial update. The email uniqueness check ignores the user being
    updated, so resubmitting the current email is accepted. A new password
    is re-hashed; omitting it keeps the old hash.
    """
    repo = UserRepository(db)
    user = await repo.get_or_fail(user_id)

    fields = payload.model_dump(exclude_unset=True)
    if "email" in fields:
        await _ensure_email_available(repo, fields["email"], exclude_id=user.id)
    if "password" in fields:
        fields["password"] = hash_password(fields["password"])

    async with write_transaction(db, unique_field="email", label="user"):
        old_values = loggable_attributes(user)
        old_values["password"] = user.password
        await repo.update(user, fields)
        new_values = loggable_attributes(user)
        new_values["password"] = user.password
        await ActivityLogService(db).updated(context, user, old_values, new_values)

    user = await repo.get_or_fail(user_id, load=UserRepository.WITH_ROLES)
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=error_responses(404),
)
async def delete_user(
    user_id: ResourceId,
    context: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    repo = UserRepository(db)
    user = await repo.get_or_fail(user_id, load=UserRepository.WITH_ROLES)

    async with write_transaction(db, label="user"):
        # Logged first: the entry's user_id is nulled if users delete themselves.
        await ActivityLogService(db).deleted(context, user)
        await repo.delete(user)

    logger.info("User %s deleted by user %s", user_id, context.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
