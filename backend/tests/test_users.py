"""
API tests for users.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from models import User
from services.auth import verify_password

BASE = "/api/v1/users"


class TestUserCrud:
    @pytest.mark.asyncio
    async def test_create_user_hides_password(self, auth_client: AsyncClient, db_session):
        response = await auth_client.post(
            BASE,
            json={"name": "Jane", "email": "Jane@Example.com", "password": "hunter22"},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["email"] == "jane@example.com"
        assert "password" not in body
        assert body["roles"] == []

        stored = (
            await db_session.execute(select(User).where(User.id == body["id"]))
        ).scalar_one()
        assert stored.password != "hunter22"
        assert verify_password("hunter22", stored.password)

    @pytest.mark.asyncio
    async def test_get_user_embeds_roles(self, auth_client: AsyncClient, admin_user):
        response = await auth_client.get(f"{BASE}/{admin_user.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == "admin@example.com"
        assert [role["name"] for role in body["roles"]] == ["admin"]

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, auth_client: AsyncClient):
        response = await auth_client.post(
            BASE,
            json={"name": "Other", "email": "admin@example.com", "password": "secret99"},
        )
        assert response.status_code == 422
        assert response.json()["errors"] == {"email": ["The email has already been taken."]}

    @pytest.mark.asyncio
    async def test_update_with_own_email_succeeds(self, auth_client: AsyncClient, admin_user):
        response = await auth_client.put(
            f"{BASE}/{admin_user.id}",
            json={"name": "Renamed Admin", "email": "admin@example.com"},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed Admin"

    @pytest.mark.asyncio
    async def test_update_to_another_users_email_fails(self, auth_client: AsyncClient):
        other = (
            await auth_client.post(
                BASE, json={"name": "Bob", "email": "bob@example.com", "password": "secret99"}
            )
        ).json()

        response = await auth_client.put(
            f"{BASE}/{other['id']}", json={"email": "admin@example.com"}
        )
        assert response.status_code == 422
        assert "email" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_password_update_rehashes(self, auth_client: AsyncClient, db_session):
        created = (
            await auth_client.post(
                BASE, json={"name": "Kim", "email": "kim@example.com", "password": "first-pass"}
            )
        ).json()

        response = await auth_client.put(
            f"{BASE}/{created['id']}", json={"password": "second-pass"}
        )
        assert response.status_code == 200

        login = await auth_client.post(
            "/api/v1/login", json={"email": "kim@example.com", "password": "second-pass"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_short_password_is_rejected(self, auth_client: AsyncClient):
        response = await auth_client.post(
            BASE, json={"name": "Short", "email": "short@example.com", "password": "123"}
        )
        assert response.status_code == 422
        assert response.json()["errors"]["password"] == [
            "The password field must be at least 6 characters."
        ]

    @pytest.mark.asyncio
    async def test_invalid_email_is_rejected(self, auth_client: AsyncClient):
        response = await auth_client.post(
            BASE, json={"name": "Bad", "email": "not-an-email", "password": "secret99"}
        )
        assert response.status_code == 422
        assert "email" in response.json()["errors"]

    @pytest.mark.asyncio
    async def test_delete_user(self, auth_client: AsyncClient):
        created = (
            await auth_client.post(
                BASE, json={"name": "Gone", "email": "gone@example.com", "password": "secret99"}
            )
        ).json()

        response = await auth_client.delete(f"{BASE}/{created['id']}")
        assert response.status_code == 204
        assert (await auth_client.get(f"{BASE}/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self, auth_client: AsyncClient):
        response = await auth_client.get(f"{BASE}/424242")
        assert response.status_code == 404
        assert response.json()["message"] == "User not found."
