"""Tests for the /api/tutors endpoints.

Runs the full stack (routes -> TutorService -> TutorRepository) against
in-memory SQLite through httpx's ASGI transport.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

pytestmark = pytest.mark.integration

ASHA = {"name": "Asha", "email": "asha@x.com", "subject": "Physics"}


async def _create(client: AsyncClient, **fields) -> dict:
    response = await client.post("/api/tutors", json=fields)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateTutor:
    async def test_returns_201_with_record(self, client: AsyncClient):
        response = await client.post(
            "/api/tutors", json={**ASHA, "phone": "9876543210", "bio": "Hi"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert data["name"] == "Asha"
        assert data["email"] == "asha@x.com"
        assert data["phone"] == "9876543210"
        assert data["subject"] == "Physics"
        assert data["bio"] == "Hi"
        assert data["created_at"] == data["updated_at"]

    async def test_duplicate_email_returns_409(self, client: AsyncClient):
        await _create(client, **ASHA)

        response = await client.post(
            "/api/tutors", json={"name": "Bala", "email": "asha@x.com"}
        )

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Email already exists: asha@x.com",
            "error": "duplicate_email",
            "email": "asha@x.com",
        }

    async def test_missing_name_returns_422_with_field(self, client: AsyncClient):
        response = await client.post("/api/tutors", json={"email": "a@x.com"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "invalid_input"
        assert body["field"] == "name"

    async def test_bad_email_returns_422(self, client: AsyncClient):
        response = await client.post(
            "/api/tutors", json={"name": "Asha", "email": "asha-at-x"}
        )

        assert response.status_code == 422
        assert response.json()["field"] == "email"

    async def test_wrong_body_shape_returns_422(self, client: AsyncClient):
        response = await client.post("/api/tutors", json={"name": ["Asha"]})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "invalid_input"
        assert body["field"] == "name"
        assert isinstance(body["detail"], str)

    async def test_non_json_body_returns_422(self, client: AsyncClient):
        response = await client.post(
            "/api/tutors",
            content=b"not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"

    async def test_strips_whitespace(self, client: AsyncClient):
        data = await _create(client, name="  Asha  ", email=" asha@x.com ", phone="")

        assert data["name"] == "Asha"
        assert data["email"] == "asha@x.com"
        assert data["phone"] is None


class TestReadTutors:
    async def test_list_empty(self, client: AsyncClient):
        response = await client.get("/api/tutors")

        assert response.status_code == 200
        assert response.json() == []

    async def test_list_all(self, client: AsyncClient):
        await _create(client, name="Asha", email="a@x.com")
        await _create(client, name="Bala", email="b@x.com")

        response = await client.get("/api/tutors")

        assert [t["name"] for t in response.json()] == ["Asha", "Bala"]

    async def test_get_by_id(self, client: AsyncClient):
        created = await _create(client, **ASHA)

        response = await client.get(f"/api/tutors/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    async def test_get_missing_returns_404(self, client: AsyncClient):
        response = await client.get("/api/tutors/99")

        assert response.status_code == 404
        assert response.json() == {
            "detail": "Tutor not found with id: 99",
            "error": "not_found",
            "tutor_id": 99,
        }

    async def test_non_integer_id_returns_422(self, client: AsyncClient):
        response = await client.get("/api/tutors/abc")

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"
        assert response.json()["field"] == "tutor_id"


class TestUpdateTutor:
    async def test_updates_fields(self, client: AsyncClient):
        created = await _create(client, **ASHA)

        response = await client.put(
            f"/api/tutors/{created['id']}",
            json={"name": "Asha Rao", "email": "asha@x.com", "subject": "History"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Asha Rao"
        assert data["subject"] == "History"
        assert data["created_at"] == created["created_at"]

    async def test_email_of_other_tutor_returns_409(self, client: AsyncClient):
        asha = await _create(client, **ASHA)
        await _create(client, name="Bala", email="bala@x.com")

        response = await client.put(
            f"/api/tutors/{asha['id']}", json={"name": "Asha", "email": "bala@x.com"}
        )

        assert response.status_code == 409
        unchanged = await client.get(f"/api/tutors/{asha['id']}")
        assert unchanged.json() == asha

    async def test_missing_returns_404(self, client: AsyncClient):
        response = await client.put("/api/tutors/5", json=ASHA)

        assert response.status_code == 404
        assert response.json()["tutor_id"] == 5

    async def test_invalid_input_returns_422(self, client: AsyncClient):
        created = await _create(client, **ASHA)

        response = await client.put(
            f"/api/tutors/{created['id']}",
            json={"name": "Asha", "email": "asha@x.com", "phone": "1" * 16},
        )

        assert response.status_code == 422
        assert response.json()["field"] == "phone"


class TestDeleteTutor:
    async def test_returns_204(self, client: AsyncClient):
        created = await _create(client, **ASHA)

        response = await client.delete(f"/api/tutors/{created['id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert (await client.get(f"/api/tutors/{created['id']}")).status_code == 404

    async def test_missing_returns_404(self, client: AsyncClient):
        response = await client.delete("/api/tutors/1")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestSearchTutors:
    async def test_search_by_name_is_case_insensitive(self, client: AsyncClient):
        await _create(client, name="Asha Rao", email="a@x.com")
        await _create(client, name="Bala", email="b@x.com")

        response = await client.get("/api/tutors/search", params={"name": "ASHA"})

        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["Asha Rao"]

    async def test_search_within_subject(self, client: AsyncClient):
        await _create(client, name="Asha", email="a@x.com", subject="Physics")
        await _create(client, name="Sasha", email="s@x.com", subject="History")

        response = await client.get(
            "/api/tutors/search", params={"name": "sha", "subject": "History"}
        )

        assert [t["name"] for t in response.json()] == ["Sasha"]

    async def test_search_requires_name(self, client: AsyncClient):
        response = await client.get("/api/tutors/search")

        assert response.status_code == 422

    async def test_by_subject_ordered_by_name(self, client: AsyncClient):
        await _create(client, name="Chen", email="c@x.com", subject="Physics")
        await _create(client, name="Asha", email="a@x.com", subject="Physics")
        await _create(client, name="Bala", email="b@x.com", subject="History")

        response = await client.get("/api/tutors/subject/Physics")

        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["Asha", "Chen"]

    async def test_recent_includes_new_tutor(self, client: AsyncClient):
        created = await _create(client, **ASHA)

        response = await client.get("/api/tutors/recent")

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [created["id"]]


async def test_store_failure_returns_500(app: FastAPI):
    service = AsyncMock()
    service.list_all.side_effect = ConnectionError("database is gone")
    app.state.tutor_service = service

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/api/tutors")

    assert response.status_code == 500
    assert "unexpected error" in response.json()["detail"]


class TestIdOutsideKeyRange:
    HUGE_ID = 2**64

    async def test_get_returns_404(self, client: AsyncClient):
        response = await client.get(f"/api/tutors/{self.HUGE_ID}")

        assert response.status_code == 404
        assert response.json()["tutor_id"] == self.HUGE_ID

    async def test_put_returns_404(self, client: AsyncClient):
        response = await client.put(f"/api/tutors/{self.HUGE_ID}", json=ASHA)

        assert response.status_code == 404

    async def test_delete_returns_404(self, client: AsyncClient):
        response = await client.delete(f"/api/tutors/{self.HUGE_ID}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"
