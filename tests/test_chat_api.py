"""
Chat API Tests
General vs case threads, guidance failures, and the context helper.
"""

import pytest
from httpx import AsyncClient

from prose_counsel.services.chat import resolve_chat_context

pytestmark = pytest.mark.anyio


async def test_general_message_exchange(client: AsyncClient, fake_ai):
    response = await client.post("/api/chat", json={"content": "How do I serve a summons?"})

    assert response.status_code == 201
    body = response.json()
    assert body["userMessage"]["role"] == "user"
    assert body["userMessage"]["caseId"] is None
    assert body["aiMessage"]["role"] == "assistant"
    assert body["aiMessage"]["content"] == "Answer for general"
    assert body["aiMessage"]["sources"] == ["Fed. R. Civ. P. 12(b)(6)"]
    assert body["aiMessage"]["metadata"] is None

    _, args = next(call for call in fake_ai.calls if call[0] == "guidance")
    assert args[1] == "general"
    assert args[2] is None


async def test_case_message_uses_case_context(client: AsyncClient, case, fake_ai):
    response = await client.post("/api/chat", json={"content": "Is my claim plausible?", "caseId": case.id})

    assert response.status_code == 201
    ai_message = response.json()["aiMessage"]
    assert ai_message["caseId"] == case.id
    assert ai_message["content"] == "Answer for N.D. Illinois"
    assert ai_message["metadata"]["caseContext"] == {
        "title": case.title,
        "plaintiff": case.plaintiff,
        "defendant": case.defendant,
        "jurisdiction": case.jurisdiction,
        "description": case.description,
    }


async def test_threads_do_not_mix(client: AsyncClient, case):
    await client.post("/api/chat", json={"content": "general question"})
    await client.post("/api/chat", json={"content": "case question", "caseId": case.id})

    general = (await client.get("/api/chat")).json()
    general_alias = (await client.get("/api/chat/general")).json()
    scoped = (await client.get(f"/api/chat/{case.id}")).json()

    assert [m["content"] for m in general] == ["general question", "Answer for general"]
    assert general_alias == general
    assert [m["content"] for m in scoped] == ["case question", "Answer for N.D. Illinois"]


async def test_general_case_id_string_means_general(client: AsyncClient):
    response = await client.post("/api/chat", json={"content": "q", "caseId": "general"})
    assert response.status_code == 201
    assert response.json()["userMessage"]["caseId"] is None


async def test_empty_content_is_400(client: AsyncClient):
    for payload in ({}, {"content": ""}, {"content": "   "}):
        response = await client.post("/api/chat", json=payload)
        assert response.status_code == 400
        assert response.json()["error"] == "Message content is required"
    assert (await client.get("/api/chat")).json() == []


async def test_unknown_case_is_404_and_stores_nothing(client: AsyncClient):
    response = await client.post("/api/chat", json={"content": "q", "caseId": "missing"})
    assert response.status_code == 404
    assert (await client.get("/api/chat/missing")).json() == []


async def test_guidance_failure_keeps_user_turn(client: AsyncClient, fake_ai):
    fake_ai.fail = {"guidance"}
    response = await client.post("/api/chat", json={"content": "Will this fail?"})

    assert response.status_code == 503
    history = (await client.get("/api/chat")).json()
    assert [m["role"] for m in history] == ["user"]


async def test_resolve_chat_context():
    assert resolve_chat_context(None) is None
    assert resolve_chat_context("") is None
    assert resolve_chat_context("general") is None
    assert resolve_chat_context("General") is None
    assert resolve_chat_context("abc-123") == "abc-123"
