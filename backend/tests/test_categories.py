"""
API tests for categories and subcategories.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from models import ClothTypeSubcategory, Subcategory


class TestCategoriesAPI:
    @pytest.mark.asyncio
    async def test_get_categories_empty(self, auth_client: AsyncClient):
        response = await auth_client.get("/api/v1/categories")
        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["total"] == 0
        assert body["total_pages"] == 1
        assert body["current_page"] == 1
        assert body["per_page"] == 15

    @pytest.mark.asyncio
    async def test_create_category(self, auth_client: AsyncClient):
        response = await auth_client.post(
            "/api/v1/categories", json={"name": "Outerwear", "description": "Coats"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Outerwear"
        assert body["description"] == "Coats"
        assert body["subcategories"] == []

    @pytest.mark.asyncio
    async def test_create_category_empty_name(self, auth_client: AsyncClient):
        response = await auth_client.post("/api/v1/categories", json={"name": ""})
        assert response.status_code == 422
        assert response.json()["errors"]["name"] == ["The name field is required."]

    @pytest.mark.asyncio
    async def test_get_category_embeds_subcategories(
        self, auth_client: AsyncClient, sample_category, sample_subcategories
    ):
        response = await auth_client.get(f"/api/v1/categories/{sample_category.id}")
        assert response.status_code == 200
        names = [s["name"] for s in response.json()["subcategories"]]
        assert names == [s.name for s in sample_subcategories]

    @pytest.mark.asyncio
    async def test_update_category(self, auth_client: AsyncClient, sample_category):
        response = await auth_client.put(
            f"/api/v1/categories/{sample_category.id}", json={"description": "Updated"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Dresses"
        assert body["description"] == "Updated"

    @pytest.mark.asyncio
    async def test_delete_category_cascades(
        self, auth_client: AsyncClient, db_session, sample_category, sample_subcategories
    ):
        a = sample_subcategories[0].id
        created = await auth_client.post(
            "/api/v1/cloth-types", json={"code": "CAT-DEL", "name": "Dress", "subcat_id": [a]}
        )
        assert created.status_code == 201

        response = await auth_client.delete(f"/api/v1/categories/{sample_category.id}")
        assert response.status_code == 204

        remaining = await db_session.execute(
            select(func.count()).select_from(Subcategory)
        )
        assert remaining.scalar_one() == 0
        links = await db_session.execute(
            select(func.count()).select_from(ClothTypeSubcategory)
        )
        assert links.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_category_not_found(self, auth_client: AsyncClient):
        response = await auth_client.get("/api/v1/categories/9999")
        assert response.status_code == 404
        assert response.json()["message"] == "Category not found."


class TestSubcategoriesAPI:
    @pytest.mark.asyncio
    async def test_create_subcategory(self, auth_client: AsyncClient, sample_category):
        response = await auth_client.post(
            "/api/v1/subcategories",
            json={"category_id": sample_category.id, "name": "Parka"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["category"] == {"id": sample_category.id, "name": "Dresses"}
        assert body["cloth_types"] == []

    @pytest.mark.asyncio
    async def test_create_subcategory_unknown_category(self, auth_client: AsyncClient):
        response = await auth_client.post(
            "/api/v1/subcategories", json={"category_id": 9999, "name": "Orphan"}
        )
        assert response.status_code == 422
        assert response.json()["errors"] == {
            "category_id": ["The selected category_id is invalid."]
        }

    @pytest.mark.asyncio
    async def test_filter_by_category(
        self, auth_client: AsyncClient, db_session, sample_category, sample_subcategories
    ):
        other = await auth_client.post("/api/v1/categories", json={"name": "Shoes"})
        other_id = other.json()["id"]
        await auth_client.post(
            "/api/v1/subcategories", json={"category_id": other_id, "name": "Boots"}
        )

        only_other = await auth_client.get(f"/api/v1/subcategories?category_id={other_id}")
        assert [s["name"] for s in only_other.json()["data"]] == ["Boots"]

        both = await auth_client.get(
            f"/api/v1/subcategories?category_id={sample_category.id},{other_id}"
        )
        assert both.json()["total"] == len(sample_subcategories) + 1

        repeated = await auth_client.get(
            f"/api/v1/subcategories?category_id={sample_category.id}&category_id=abc"
        )
        assert repeated.json()["total"] == len(sample_subcategories)

    @pytest.mark.asyncio
    async def test_filter_ignores_non_ascii_and_oversized_values(
        self, auth_client: AsyncClient, sample_category, sample_subcategories
    ):
        for raw in ("\u00b2", "\u0663", "9" * 30, "1" * 5000):
            response = await auth_client.get(
                "/api/v1/subcategories", params={"category_id": raw}
            )
            assert response.status_code == 200
            assert response.json()["total"] == len(sample_subcategories)

        mixed = await auth_client.get(
            "/api/v1/subcategories", params={"category_id": f"\u00b2,{sample_category.id}"}
        )
        assert mixed.json()["total"] == len(sample_subcategories)

    @pytest.mark.asyncio
    async def test_oversized_category_id_is_rejected(self, auth_client: AsyncClient):
        response = await auth_client.post(
            "/api/v1/subcategories", json={"category_id": 2**63, "name": "Huge"}
        )
        assert response.status_code == 422
        assert "category_id" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_subcategory_lists_cloth_types(
        self, auth_client: AsyncClient, sample_subcategories
    ):
        a = sample_subcategories[0].id
        await auth_client.post(
            "/api/v1/cloth-types", json={"code": "LINK", "name": "Gown", "subcat_id": [a]}
        )

        response = await auth_client.get(f"/api/v1/subcategories/{a}")
        assert response.status_code == 200
        assert [c["code"] for c in response.json()["cloth_types"]] == ["LINK"]

    @pytest.mark.asyncio
    async def test_update_subcategory_null_category_rejected(
        self, auth_client: AsyncClient, sample_subcategories
    ):
        a = sample_subcategories[0].id
        response = await auth_client.put(
            f"/api/v1/subcategories/{a}", json={"category_id": None}
        )
        assert response.status_code == 422
        assert response.json()["errors"]["category_id"] == [
            "The category_id field is required."
        ]
