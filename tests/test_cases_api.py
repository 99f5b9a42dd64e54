"""
Cases API Tests
"""

import pytest
from httpx import AsyncClient

from prose_counsel.core.utc import parse_iso


# =============================================================================
# Create / Read
# =============================================================================

@pytest.mark.anyio
async def test_create_case_returns_camel_case(client: AsyncClient, case_payload):
    response = await client.post("/api/cases", json=case_payload())
    assert response.status_code == 201

    data = response.json()
    assert data["id"]
    assert data["caseNumber"] == "3:24-cv-01234"
    assert data["status"] == "active"
    assert "createdAt" in data and "updatedAt" in data


@pytest.mark.anyio
async def test_create_then_get_case(client: AsyncClient, case_payload):
    created = (await client.post("/api/cases", json=case_payload())).json()

    response = await client.get(f"/api/cases/{created['id']}")
    assert response.status_code == 200
    fetched = response.json()
    for key in ("title", "caseNumber", "plaintiff", "defendant", "jurisdiction", "description"):
        assert fetched[key] == created[key]


@pytest.mark.anyio
async def test_snake_case_input_accepted(client: AsyncClient, case_payload):
    payload = case_payload()
    payload["case_number"] = payload.pop("caseNumber")
    response = await client.post("/api/cases", json=payload)
    assert response.status_code == 201
    assert response.json()["caseNumber"] == "3:24-cv-01234"


@pytest.mark.anyio
async def test_create_case_missing_field_is_400(client: AsyncClient, case_payload):
    payload = case_payload()
    del payload["defendant"]
    response = await client.post("/api/cases", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert any(d["field"] == "defendant" for d in body["details"])


@pytest.mark.anyio
async def test_invalid_status_rejected(client: AsyncClient, case_payload):
    response = await client.post("/api/cases", json=case_payload(status="won"))
    assert response.status_code == 400


@pytest.mark.anyio
async def test_unknown_case_is_404(client: AsyncClient):
    response = await client.get("/api/cases/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Case not found"}


@pytest.mark.anyio
async def test_list_cases_newest_first(client: AsyncClient, case_payload):
    first = (await client.post("/api/cases", json=case_payload(title="First"))).json()
    second = (await client.post("/api/cases", json=case_payload(title="Second"))).json()

    response = await client.get("/api/cases")
    assert [c["id"] for c in response.json()] == [second["id"], first["id"]]


# =============================================================================
# Update
# =============================================================================

@pytest.mark.anyio
async def test_partial_update_keeps_other_fields(client: AsyncClient, case_payload):
    created = (await client.post("/api/cases", json=case_payload())).json()

    response = await client.patch(f"/api/cases/{created['id']}", json={"status": "pending"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "pending"
    assert updated["title"] == created["title"]
    assert updated["description"] == created["description"]
    assert parse_iso(updated["updatedAt"]) > parse_iso(created["updatedAt"])


@pytest.mark.anyio
async def test_null_for_required_field_is_ignored(client: AsyncClient, case_payload):
    created = (await client.post("/api/cases", json=case_payload())).json()

    response = await client.patch(
        f"/api/cases/{created['id']}", json={"title": None, "description": None}
    )
    assert response.status_code == 200
    assert response.json()["title"] == created["title"]
    assert response.json()["description"] is None


@pytest.mark.anyio
async def test_update_unknown_case_is_404(client: AsyncClient):
    response = await client.patch("/api/cases/nope", json={"status": "closed"})
    assert response.status_code == 404


# =============================================================================
# Children
# =============================================================================

@pytest.mark.anyio
async def test_case_documents_and_deadlines(client: AsyncClient, case):
    await client.post("/api/documents", json={
        "caseId": case.id, "title": "Motion", "documentType": "motion", "content": "Motion text",
    })
    await client.post("/api/deadlines", json={
        "caseId": case.id, "title": "Reply", "dueDate": "2030-01-15T17:00:00Z", "deadlineType": "filing",
    })

    docs = (await client.get(f"/api/cases/{case.id}/documents")).json()
    deadlines = (await client.get(f"/api/cases/{case.id}/deadlines")).json()

    assert [d["title"] for d in docs] == ["Motion"]
    assert [d["title"] for d in deadlines] == ["Reply"]


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "x-request-id" in response.headers
