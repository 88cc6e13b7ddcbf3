"""Tests for the safety chat assistant."""

from unittest.mock import AsyncMock, patch

import pytest

import chat
from chat import FALLBACK_REPLY, build_system_prompt, trim_history
from gemini import GeminiUnavailable
from models import ChatMessage


def _history(n):
    return [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"message {i}"}
        for i in range(n)
    ]


def test_without_gemini_key_returns_fallback(client):
    response = client.post("/api/safety-chat", json={"message": "Is Juhu beach safe at night?"})
    assert response.status_code == 200
    data = response.json()
    assert data["response"] == FALLBACK_REPLY
    assert data["timestamp"]


def test_empty_message_is_rejected(client):
    assert client.post("/api/safety-chat", json={"message": ""}).status_code == 422


def test_reply_from_model(client):
    with patch.object(chat, "generate_chat_reply", AsyncMock(return_value="Stay on lit roads.")) as gen:
        data = client.post("/api/safety-chat", json={"message": "Tips?"}).json()
    assert data["response"] == "Stay on lit roads."
    system_prompt, history, message = gen.await_args.args
    assert "GuardianAI" in system_prompt
    assert history == []
    assert message == "Tips?"


def test_model_failure_degrades(client):
    with patch.object(chat, "generate_chat_reply", AsyncMock(side_effect=GeminiUnavailable("blocked"))):
        data = client.post("/api/safety-chat", json={"message": "Tips?"}).json()
    assert data["response"] == FALLBACK_REPLY


def test_history_is_trimmed_to_last_ten(client):
    with patch.object(chat, "generate_chat_reply", AsyncMock(return_value="ok")) as gen:
        client.post("/api/safety-chat", json={"message": "next", "chatHistory": _history(14)})
    history = gen.await_args.args[1]
    assert len(history) == 10
    assert history[0]["content"] == "message 4"
    assert history[-1]["content"] == "message 13"


def test_trim_history_zero_limit():
    assert trim_history([ChatMessage(role="user", content="hi")], limit=0) == []


class TestSafetyContext:
    @pytest.fixture
    def seeded_client(self, client, store):
        import asyncio
        asyncio.run(store.insert("safety_incidents", {
            "incident_type": "stalking", "severity": 8, "location_name": "Carter Road", "verified": True,
        }))
        asyncio.run(store.insert("safety_incidents", {
            "incident_type": "theft", "severity": 3, "location_name": "Hill Road", "verified": False,
        }))
        asyncio.run(store.insert("risk_factors", {
            "factor_type": "poor_lighting", "risk_level": 6, "location_name": "Bandstand",
        }))
        return client

    def test_location_adds_context(self, seeded_client):
        with patch.object(chat, "generate_chat_reply", AsyncMock(return_value="ok")) as gen:
            seeded_client.post("/api/safety-chat", json={
                "message": "Is Bandra safe?", "location": {"lat": 19.05, "lng": 72.82},
            })
        prompt = gen.await_args.args[0]
        assert "stalking (severity: 8/10) at Carter Road" in prompt
        assert "poor_lighting (risk level: 6/10) at Bandstand" in prompt
        assert "theft" not in prompt

    def test_no_location_no_context(self, seeded_client):
        with patch.object(chat, "generate_chat_reply", AsyncMock(return_value="ok")) as gen:
            seeded_client.post("/api/safety-chat", json={"message": "Is Bandra safe?"})
        assert "Current safety context: none available" in gen.await_args.args[0]


def test_system_prompt_lists_emergency_numbers():
    prompt = build_system_prompt("")
    assert "Police-100" in prompt and "Women Helpline-1091" in prompt


class TestPersistence:
    def test_transcript_grows_by_two_per_exchange(self, client):
        with patch.object(chat, "generate_chat_reply", AsyncMock(side_effect=["first", "second"])):
            client.post("/api/safety-chat", json={"message": "one", "userId": "u1"})
            after_one = client.get("/api/safety-chat/history", params={"userId": "u1"}).json()["messages"]
            client.post("/api/safety-chat", json={"message": "two", "userId": "u1"})
            after_two = client.get("/api/safety-chat/history", params={"userId": "u1"}).json()["messages"]

        assert len(after_one) == 2
        assert len(after_two) == 4
        assert after_two[:2] == after_one
        assert [m["content"] for m in after_two] == ["one", "first", "two", "second"]
        assert [m["role"] for m in after_two] == ["user", "assistant", "user", "assistant"]

    def test_single_active_session_per_user(self, client, store):
        import asyncio
        for text in ("a", "b", "c"):
            client.post("/api/safety-chat", json={"message": text, "userId": "u1"})
        sessions = asyncio.run(store.select("chat_sessions", {"user_id": "u1"}))
        assert len(sessions) == 1
        assert sessions[0]["session_type"] == "safety_chat"

    def test_anonymous_chat_is_not_saved(self, client, store):
        import asyncio
        client.post("/api/safety-chat", json={"message": "hello"})
        assert asyncio.run(store.select("chat_sessions")) == []

    def test_save_failure_still_answers(self, failing_store):
        from fastapi.testclient import TestClient
        from routes import app
        from store import get_store

        app.dependency_overrides[get_store] = lambda: failing_store
        try:
            response = TestClient(app).post("/api/safety-chat", json={"message": "hello", "userId": "u1"})
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 200
        assert response.json()["response"] == FALLBACK_REPLY

    def test_unknown_user_history_is_empty(self, client):
        assert client.get("/api/safety-chat/history", params={"userId": "nobody"}).json() == {"messages": []}


def test_undecodable_store_reply_still_answers():
    import httpx
    from fastapi.testclient import TestClient
    from routes import app
    from store import SupabaseStore, get_store

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="upstream proxy page")

    supabase = SupabaseStore(
        "https://demo.supabase.co", "service-key",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    app.dependency_overrides[get_store] = lambda: supabase
    try:
        response = TestClient(app).post("/api/safety-chat", json={"message": "hello", "userId": "u1"})
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 200
    assert response.json()["response"] == FALLBACK_REPLY
