"""End-to-end tests for the HTTP surface via httpx.ASGITransport."""
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_matching_service
from app.database import get_db
from app.main import app
from app.services.matching_service import MatchingService


@pytest_asyncio.fixture
async def client(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    service = MatchingService()
    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_matching_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def _register(client, handle: str, role: str | None = None) -> str:
    resp = await client.post(
        "/api/v1/participants",
        json={"external_id": f"https://github.com/{handle}", "display_name": handle.title()},
    )
    assert resp.status_code in (200, 201)
    participant_id = resp.json()["id"]
    if role:
        resp = await client.put(
            "/api/v1/participants/me/role",
            json={"role": role},
            headers={"X-Participant-Id": participant_id},
        )
        assert resp.status_code == 200
    return participant_id


def _as(participant_id: str) -> dict:
    return {"X-Participant-Id": participant_id}


class TestHealth:

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}


class TestParticipants:

    @pytest.mark.asyncio
    async def test_register_is_idempotent(self, client):
        payload = {"external_id": "https://github.com/barbara", "display_name": "Barbara"}
        first = await client.post("/api/v1/participants", json=payload)
        second = await client.post("/api/v1/participants", json=payload)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]

    @pytest.mark.asyncio
    async def test_invalid_role_is_400(self, client):
        pid = await _register(client, "dennis")
        resp = await client.put("/api/v1/participants/me/role", json={"role": "designer"}, headers=_as(pid))

        assert resp.status_code == 400
        assert resp.json()["error"] == "Bad Request"
        assert "designer" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_missing_identity_header_is_401(self, client):
        resp = await client.post("/api/v1/matches/find")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_identity_header_is_401(self, client):
        resp = await client.post("/api/v1/matches/find", headers={"X-Participant-Id": "not-a-uuid"})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_participant_is_404(self, client):
        resp = await client.get("/api/v1/participants/me/status", headers=_as(str(uuid.uuid4())))
        assert resp.status_code == 404


class TestMatchingFlow:

    @pytest.mark.asyncio
    async def test_find_requires_role(self, client):
        pid = await _register(client, "norole")
        resp = await client.post("/api/v1/matches/find", headers=_as(pid))
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_waiting_then_matched_then_completed(self, client):
        front = await _register(client, "ada", "FRONTEND")
        back = await _register(client, "linus", "BACKEND")

        waiting = await client.post("/api/v1/matches/find", headers=_as(front))
        assert waiting.status_code == 200
        assert waiting.json()["status"] == "WAITING"
        assert waiting.json()["queue_position"] == 1

        matched = await client.post("/api/v1/matches/find", headers=_as(back))
        body = matched.json()
        assert body["status"] == "MATCHED"
        assert body["partner_role"] == "FRONTEND"
        match_id = body["match_id"]

        conflict = await client.post("/api/v1/matches/find", headers=_as(front))
        assert conflict.status_code == 409
        assert conflict.json()["error"] == "Conflict"

        status = await client.get("/api/v1/participants/me/status", headers=_as(front))
        assert status.json()["has_active_match"] is True
        assert status.json()["active_match"]["match_id"] == match_id
        assert status.json()["active_match"]["partner_role"] == "BACKEND"

        stranger = await _register(client, "grace", "FRONTEND")
        forbidden = await client.post(f"/api/v1/matches/{match_id}/complete", headers=_as(stranger))
        assert forbidden.status_code == 403

        done = await client.post(f"/api/v1/matches/{match_id}/complete", json={}, headers=_as(front))
        assert done.status_code == 200
        assert done.json()["status"] == "COMPLETED"
        assert done.json()["review"] is None

        again = await client.post(f"/api/v1/matches/{match_id}/complete", headers=_as(back))
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_leave_queue_is_idempotent(self, client):
        front = await _register(client, "margaret", "FRONTEND")
        await client.post("/api/v1/matches/find", headers=_as(front))

        for _ in range(2):
            resp = await client.delete("/api/v1/matches/queue", headers=_as(front))
            assert resp.status_code == 204

        status = await client.get("/api/v1/participants/me/status", headers=_as(front))
        assert status.json()["waiting_since"] is None

    @pytest.mark.asyncio
    async def test_complete_unknown_match_is_404(self, client):
        front = await _register(client, "guido", "FRONTEND")
        resp = await client.post(f"/api/v1/matches/{uuid.uuid4()}/complete", headers=_as(front))
        assert resp.status_code == 404
