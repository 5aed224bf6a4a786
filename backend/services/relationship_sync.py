"""
Cloth type <-> subcategory association sync.

``sync_subcategories`` makes the set of join rows for a cloth type equal to
the requested set of subcategory ids:

* ids requested but not yet linked are attached (new join rows);
* ids linked but not requested are detached (join rows deleted);
* ids in both sets are left alone, so their join rows keep their id and
  timestamps.

Calling it twice with the same ids performs no writes the second time.
The caller owns the transaction; this module only flushes.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.cloth_type import ClothTypeSubcategory

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Ids attached and detached by one sync call, both sorted ascending."""

    attached: List[int] = field(default_factory=list)
    detached: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.attached or self.detached)


async def linked_subcategory_ids(db: AsyncSession, cloth_type_id: int) -> List[int]:
    result = await db.execute(
        select(ClothTypeSubcategory.subcategory_id)
        .where(ClothTypeSubcategory.cloth_type_id == cloth_type_id)
        .order_by(ClothTypeSubcategory.subcategory_id)
    )
    return list(result.scalars().all())


async def sync_subcategories(
    db: AsyncSession,
    cloth_type_id: int,
    desired_ids: Iterable[int],
) -> SyncResult:
    """
    Reconcile the join rows of ``cloth_type_id`` with ``desired_ids``.

    An empty ``desired_ids`` detaches everything. Existence of the
    subcategories is validated by the caller before this runs.
    """
    desired = set(desired_ids)
    current = set(await linked_subcategory_ids(db, cloth_type_id))

    to_detach = sorted(current - desired)
    to_attach = sorted(desired - current)

    if to_detach:
        await db.execute(
            delete(ClothTypeSubcategory)
            .where(ClothTypeSubcategory.cloth_type_id == cloth_type_id)
            .where(ClothTypeSubcategory.subcategory_id.in_(to_detach))
            .execution_options(synchronize_session=False)
        )

    if to_attach:
        db.add_all(
            [
                ClothTypeSubcategory(cloth_type_id=cloth_type_id, subcategory_id=subcategory_id)
                for subcategory_id in to_attach
            ]
        )

    if to_detach or to_attach:
        await db.flush()
        logger.debug(
            "Synced cloth type %s subcategories: attached=%s detached=%s",
            cloth_type_id,
            to_attach,
            to_detach,
        )

    return SyncResult(attached=to_attach, detached=to_detach)
