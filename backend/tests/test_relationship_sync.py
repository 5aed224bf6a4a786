"""
Tests for cloth type <-> subcategory association sync.
"""

from datetime import datetime

import pytest
from sqlalchemy import select, update

from models import ClothType, ClothTypeSubcategory
from services.relationship_sync import linked_subcategory_ids, sync_subcategories


async def _cloth_type(db_session, code="DRS-01") -> ClothType:
    cloth_type = ClothType(code=code, name="Dress")
    db_session.add(cloth_type)
    await db_session.flush()
    return cloth_type


async def _link_rows(db_session, cloth_type_id):
    """Map subcategory id to the (row id, updated_at) of its join row."""
    result = await db_session.execute(
        select(ClothTypeSubcategory)
        .where(ClothTypeSubcategory.cloth_type_id == cloth_type_id)
        .order_by(ClothTypeSubcategory.subcategory_id)
        .execution_options(populate_existing=True)
    )
    return {row.subcategory_id: (row.id, row.updated_at) for row in result.scalars().all()}


async def _backdate_links(db_session, cloth_type_id):
    await db_session.execute(
        update(ClothTypeSubcategory)
        .where(ClothTypeSubcategory.cloth_type_id == cloth_type_id)
        .values(updated_at=datetime(2020, 1, 1))
    )


class TestSyncSubcategories:
    @pytest.mark.asyncio
    async def test_attaches_requested_ids(self, db_session, sample_subcategories):
        cloth_type = await _cloth_type(db_session)
        ids = [s.id for s in sample_subcategories[:3]]

        result = await sync_subcategories(db_session, cloth_type.id, ids)

        assert result.attached == sorted(ids)
        assert result.detached == []
        assert await linked_subcategory_ids(db_session, cloth_type.id) == sorted(ids)

    @pytest.mark.asyncio
    async def test_second_call_with_same_ids_writes_nothing(
        self, db_session, sample_subcategories
    ):
        cloth_type = await _cloth_type(db_session)
        ids = [s.id for s in sample_subcategories[:2]]

        await sync_subcategories(db_session, cloth_type.id, ids)
        await _backdate_links(db_session, cloth_type.id)
        rows_before = await _link_rows(db_session, cloth_type.id)

        result = await sync_subcategories(db_session, cloth_type.id, ids)

        assert result.attached == []
        assert result.detached == []
        assert not result.changed
        assert await _link_rows(db_session, cloth_type.id) == rows_before

    @pytest.mark.asyncio
    async def test_replaces_by_symmetric_difference(self, db_session, sample_subcategories):
        cloth_type = await _cloth_type(db_session)
        a, b, c, d, _ = [s.id for s in sample_subcategories]

        await sync_subcategories(db_session, cloth_type.id, [a, b, c])
        await _backdate_links(db_session, cloth_type.id)
        rows_before = await _link_rows(db_session, cloth_type.id)

        result = await sync_subcategories(db_session, cloth_type.id, [b, c, d])

        assert result.attached == [d]
        assert result.detached == [a]
        rows_after = await _link_rows(db_session, cloth_type.id)
        assert sorted(rows_after) == sorted([b, c, d])
        # Rows for ids kept on both sides are neither re-created nor touched.
        assert rows_after[b] == rows_before[b]
        assert rows_after[c] == rows_before[c]
        assert rows_after[b][1] == datetime(2020, 1, 1)

    @pytest.mark.asyncio
    async def test_empty_list_detaches_everything(self, db_session, sample_subcategories):
        cloth_type = await _cloth_type(db_session)
        ids = [s.id for s in sample_subcategories[:3]]
        await sync_subcategories(db_session, cloth_type.id, ids)

        result = await sync_subcategories(db_session, cloth_type.id, [])

        assert result.detached == sorted(ids)
        assert await linked_subcategory_ids(db_session, cloth_type.id) == []

    @pytest.mark.asyncio
    async def test_duplicates_in_request_are_collapsed(self, db_session, sample_subcategories):
        cloth_type = await _cloth_type(db_session)
        a = sample_subcategories[0].id

        result = await sync_subcategories(db_session, cloth_type.id, [a, a, a])

        assert result.attached == [a]
        assert await linked_subcategory_ids(db_session, cloth_type.id) == [a]

    @pytest.mark.asyncio
    async def test_other_cloth_types_are_untouched(self, db_session, sample_subcategories):
        first = await _cloth_type(db_session, code="DRS-01")
        second = await _cloth_type(db_session, code="DRS-02")
        a, b = sample_subcategories[0].id, sample_subcategories[1].id

        await sync_subcategories(db_session, first.id, [a, b])
        await sync_subcategories(db_session, second.id, [a])
        await sync_subcategories(db_session, first.id, [])

        assert await linked_subcategory_ids(db_session, first.id) == []
        assert await linked_subcategory_ids(db_session, second.id) == [a]
