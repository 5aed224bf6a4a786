"""
Resource repositories: thin async accessors over one model each.

Repositories hold no state between requests; every instance wraps the
request's ``AsyncSession``. Relationships are never lazy loaded. Callers say
which ones they need through the ``load`` argument, e.g.
``ClothTypeRepository.WITH_SUBCATEGORIES``.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from api.errors import NotFound, ServerError, ValidationFailed
from db.database import Base
from models import ActivityLog, Category, ClothType, Subcategory, User
from services.pagination import PageParams, paginate
from schemas.common import Page

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@asynccontextmanager
async def write_transaction(
    db: AsyncSession,
    *,
    unique_field: Optional[str] = None,
    label: str = "record",
):
    """
    Commit the writes made inside the block, or roll them all back.

    A unique constraint violation becomes a 422 on ``unique_field``; a store
    outage becomes a 500 without driver detail.
    """
    try:
        yield
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Integrity error while writing %s: %s", label, exc.orig)
        if unique_field:
            raise ValidationFailed.for_field(
                unique_field, f"The {unique_field} has already been taken."
            ) from exc
        raise ValidationFailed("The given data conflicts with existing records.") from exc
    except OperationalError as exc:
        await db.rollback()
        logger.error("Data store unavailable while writing %s: %s", label, exc.orig)
        raise ServerError("The data store is unavailable. Please try again later.") from exc


class ResourceRepository(Generic[ModelT]):
    model: Type[ModelT]
    label: str = "Resource"

    def __init__(self, db: AsyncSession):
        self.db = db

    def query(self) -> Select:
        return select(self.model)

    async def list_page(
        self,
        params: PageParams,
        *,
        load: Sequence[Any] = (),
        query: Optional[Select] = None,
        transform=lambda item: item,
    ) -> Page:
        return await paginate(
            self.db,
            query if query is not None else self.query(),
            params,
            model=self.model,
            load=load,
            transform=transform,
        )

    async def get(self, entity_id: int, *, load: Sequence[Any] = ()) -> Optional[ModelT]:
        # populate_existing: join rows may have been rewritten with bulk
        # statements earlier in the same session.
        query = (
            self.query()
            .where(self.model.id == entity_id)
            .options(*load)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_fail(self, entity_id: int, *, load: Sequence[Any] = ()) -> ModelT:
        entity = await self.get(entity_id, load=load)
        if entity is None:
            raise NotFound(f"{self.label} not found.")
        return entity

    async def all(self, *, load: Sequence[Any] = ()) -> List[ModelT]:
        """Every row, newest first, with ``load`` applied (used by exports)."""
        query = self.query().options(*load).order_by(
            self.model.created_at.desc(), self.model.id.desc()
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def value_taken(
        self, column: str, value: Any, *, exclude_id: Optional[int] = None
    ) -> bool:
        """True when another row already holds ``value`` in ``column``."""
        query = select(func.count()).select_from(self.model).where(
            getattr(self.model, column) == value
        )
        if exclude_id is not None:
            query = query.where(self.model.id != exclude_id)
        return (await self.db.execute(query)).scalar_one() > 0

    async def missing_ids(self, ids: Iterable[int]) -> List[int]:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        result = await self.db.execute(
            select(self.model.id).where(self.model.id.in_(wanted))
        )
        found = set(result.scalars().all())
        return [i for i in wanted if i not in found]

    async def create(self, **fields: Any) -> ModelT:
        entity = self.model(**fields)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity: ModelT, fields: Dict[str, Any]) -> List[str]:
        """Apply ``fields`` and return the names whose value actually changed."""
        changed = []
        for name, value in fields.items():
            if getattr(entity, name) != value:
                setattr(entity, name, value)
                changed.append(name)
        if changed:
            await self.db.flush()
        return changed

    async def delete(self, entity: ModelT) -> None:
        await self.db.delete(entity)
        await self.db.flush()


class UserRepository(ResourceRepository[User]):
    model = User
    label = "User"

    WITH_ROLES = (selectinload(User.roles),)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def email_taken(self, email: str, *, exclude_id: Optional[int] = None) -> bool:
        return await self.value_taken("email", email, exclude_id=exclude_id)


class CategoryRepository(ResourceRepository[Category]):
    model = Category
    label = "Category"

    WITH_SUBCATEGORIES = (selectinload(Category.subcategories),)


class SubcategoryRepository(ResourceRepository[Subcategory]):
    model = Subcategory
    label = "Subcategory"

    WITH_RELATIONS = (
        selectinload(Subcategory.category),
        selectinload(Subcategory.cloth_types),
    )

    def query_for_categories(self, category_ids: Sequence[int]) -> Select:
        query = self.query()
        if category_ids:
            query = query.where(Subcategory.category_id.in_(category_ids))
        return query


class ClothTypeRepository(ResourceRepository[ClothType]):
    model = ClothType
    label = "Cloth type"

    WITH_SUBCATEGORIES = (selectinload(ClothType.subcategories),)

    async def code_taken(self, code: str, *, exclude_id: Optional[int] = None) -> bool:
        return await self.value_taken("code", code, exclude_id=exclude_id)


class ActivityLogRepository(ResourceRepository[ActivityLog]):
    model = ActivityLog
    label = "Activity log"

    def filtered(self, *, action: Optional[str] = None, user_id: Optional[int] = None) -> Select:
        query = self.query()
        if action:
            query = query.where(ActivityLog.action == action)
        if user_id is not None:
            query = query.where(ActivityLog.user_id == user_id)
        return query
