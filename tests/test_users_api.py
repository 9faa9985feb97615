"""
Tests for the users HTTP routes, served in-process through httpx.

The repository dependency is overridden with one bound to the test database.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.v1.repositories import get_user_repository
from app.main import app

BASE = "/api/v1/users"


@pytest.fixture
async def client(repo):
    app.dependency_overrides[get_user_repository] = lambda: repo
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def user_payload(name="Ana", email="ana@example.com"):
    return {"name": name, "email": email, "password_hash": "$2b$12$hash"}


class TestUsersApi:

    @pytest.mark.anyio
    async def test_create_user(self, client):
        response = await client.post(BASE, json=user_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["email"] == "ana@example.com"
        assert body["data"]["roles"] == []
        assert "password_hash" not in body["data"]

    @pytest.mark.anyio
    async def test_duplicate_email_is_conflict(self, client):
        await client.post(BASE, json=user_payload())

        response = await client.post(BASE, json=user_payload(name="Other"))

        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateEmailError"

    @pytest.mark.anyio
    async def test_read_user_hides_password_hash(self, client):
        created = (await client.post(BASE, json=user_payload())).json()["data"]

        response = await client.get(f"{BASE}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ana"
        assert "password_hash" not in response.text

    @pytest.mark.anyio
    async def test_read_missing_user(self, client):
        response = await client.get(f"{BASE}/999")

        assert response.status_code == 404

    @pytest.mark.anyio
    async def test_invalid_sort_is_bad_request(self, client):
        response = await client.get(BASE, params={"sort": "dropTable"})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidSortFieldError"

    @pytest.mark.anyio
    async def test_assign_unknown_role_is_not_found(self, client):
        created = (await client.post(BASE, json=user_payload())).json()["data"]

        response = await client.put(f"{BASE}/{created['id']}/roles/ghost")

        assert response.status_code == 404
        assert response.json()["error"] == "RoleNotFoundError"

    @pytest.mark.anyio
    async def test_list_filtered_by_role(self, client):
        """
        Arrange: two users, only one of them an admin
        Act: list users with role=admin
        Assert: just the admin, with its roles in the payload
        """
        admin = (await client.post(BASE, json=user_payload("Admin", "admin@example.com"))).json()["data"]
        await client.post(BASE, json=user_payload("Plain", "plain@example.com"))
        await client.put(f"{BASE}/{admin['id']}/roles/admin")

        response = await client.get(BASE, params={"role": "admin", "sort": "email", "order": "asc"})

        assert response.status_code == 200
        page = response.json()["data"]
        assert page["total"] == 1
        assert [u["email"] for u in page["items"]] == ["admin@example.com"]
        assert [r["name"] for r in page["items"][0]["roles"]] == ["admin"]

    @pytest.mark.anyio
    async def test_delete_then_read(self, client):
        created = (await client.post(BASE, json=user_payload())).json()["data"]

        deleted = await client.delete(f"{BASE}/{created['id']}")
        again = await client.delete(f"{BASE}/{created['id']}")

        assert deleted.status_code == 200
        assert again.status_code == 200
        assert (await client.get(f"{BASE}/{created['id']}")).status_code == 404
