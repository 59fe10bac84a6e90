import json

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models import FakeListChatModel

from app.main import app
from config import FALLBACK_REPLY, SERVICE_UNAVAILABLE_MESSAGE
from tests.fakes import SECRET_ERROR, CountingChatModel, FailingChatModel, make_chat_service


def _events(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_chat_returns_envelope(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=["Hello!"])))

    response = client.post("/api/chat", json={"comment": "hi"})

    assert response.status_code == 200
    body = response.json()
    assert body["code"] == 200
    assert body["data"]["content"] == "Hello!"
    assert body["data"]["type"] == "general"
    assert body["data"]["metadata"]["detectedType"] == "general"
    assert "modelInfo" in body["data"]["metadata"]
    assert len(body["requestId"]) == 8


def test_chat_honours_explicit_type_and_history(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=["ok"])))

    body = client.post("/api/chat", json={
        "comment": "hello",
        "type": "creative_writing",
        "context": {"previousMessages": [{"role": "user", "content": "earlier"}]},
    }).json()

    assert body["data"]["type"] == "creative_writing"


@pytest.mark.parametrize("path", ["/api/chat", "/api/chat-stream"])
@pytest.mark.parametrize("comment", ["", "   "])
def test_blank_comment_is_400_without_model_call(use_service, path, comment):
    llm = CountingChatModel(responses=["x"])
    client = use_service(make_chat_service(llm))

    response = client.post(path, json={"comment": comment})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == 400
    assert "data" not in body
    assert body["errors"][0]["field"] == "comment"
    assert llm.calls == 0


def test_malformed_body_is_400_envelope(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=["x"])))

    response = client.post("/api/chat", json={"comment": ["not", "text"]})

    assert response.status_code == 400
    assert response.json()["code"] == 400


def test_model_failure_is_generic_500(use_service):
    client = use_service(make_chat_service(FailingChatModel()))

    response = client.post("/api/chat", json={"comment": "hi"})

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == 500
    assert body["message"] == SERVICE_UNAVAILABLE_MESSAGE
    assert SECRET_ERROR not in response.text


def test_stream_headers_and_events(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=["Hello!"])))

    response = client.post("/api/chat-stream", json={"comment": "hi", "streaming": True})

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/plain; charset=utf-8"
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["access-control-allow-origin"] == "*"

    events = _events(response)
    assert [e["type"] for e in events[:-1]] == ["chunk"] * (len(events) - 1)
    assert events[-1]["type"] == "complete"
    assert events[-1]["content"] == "Hello!"
    assert events[-1]["metadata"]["detectedType"] == "general"
    assert events[-2]["fullContent"] == "Hello!"


def test_stream_blank_output_completes_with_fallback(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=[" \n "])))

    events = _events(client.post("/api/chat-stream", json={"comment": "hi"}))

    assert events[-1]["type"] == "complete"
    assert events[-1]["content"] == FALLBACK_REPLY


def test_stream_model_failure_is_error_event(use_service):
    client = use_service(make_chat_service(FailingChatModel()))

    response = client.post("/api/chat-stream", json={"comment": "hi"})

    assert response.status_code == 200
    events = _events(response)
    assert [e["type"] for e in events] == ["error"]
    assert events[0]["error"] == SERVICE_UNAVAILABLE_MESSAGE
    assert SECRET_ERROR not in response.text


def test_user_endpoint(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=["x"])))

    body = client.get("/api/user").json()

    assert body["code"] == 200
    assert body["data"]["email"] == "user@example.com"


def test_get_user_echoes_request():
    body = TestClient(app).get("/getUser?x=1", headers={"User-Agent": "pytest"}).json()
    assert body["method"] == "GET"
    assert body["query"] == {"x": "1"}
    assert body["userAgent"] == "pytest"


def test_missing_service_is_500_envelope():
    response = TestClient(app).post("/api/chat", json={"comment": "hi"})

    assert response.status_code == 500
    assert response.json()["message"] == "Chat service not initialized"


def test_long_comment_is_accepted(use_service):
    client = use_service(make_chat_service(FakeListChatModel(responses=["translated"])))

    response = client.post("/api/chat", json={"comment": "translate: " + "a" * 1000})

    assert response.status_code == 200
    assert response.json()["data"]["type"] == "translation"
