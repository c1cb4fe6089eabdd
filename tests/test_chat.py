"""
Tests for POST /api/chat.

Covers request validation, the missing-key configuration error, the happy
path through a mocked model, salvage of malformed replies, and the mapping
of model failures onto 429/500.
"""
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage

ADVICE = {
    "advice_text": "Irrigate early morning and mulch the beds.",
    "fertilizer": "NPK 19:19:19 at 5 g/L as foliar spray",
    "pest_flags": ["fruit borer", "early blight"],
    "suggestions": ["Stake the plants", "Remove lower leaves"],
}


def _fake_llm(content=None, error=None):
    llm = MagicMock()
    if error is not None:
        llm.ainvoke = AsyncMock(side_effect=error)
    else:
        llm.ainvoke = AsyncMock(return_value=AIMessage(content=content))
    return llm


def _openai_error(cls, status):
    response = httpx.Response(status, request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    return cls("upstream said no", response=response, body=None)


@pytest.fixture
def llm_key(settings):
    settings.OPENAI_API_KEY = "sk-test"
    return settings


@pytest.mark.parametrize("body", [
    {},
    {"message": ""},
    {"message": "   "},
    {"message": 123},
    {"message": ["why"]},
])
def test_invalid_message_rejected(client, body):
    resp = client.post("/api/chat", json=body)
    assert resp.status_code == 400


@pytest.mark.parametrize("body", [
    {"message": "hi", "lat": 95, "lon": 10},
    {"message": "hi", "lat": 10, "lon": -200},
    {"message": "hi", "lat": "north", "lon": 10},
])
def test_invalid_coordinates_rejected(client, body):
    resp = client.post("/api/chat", json=body)
    assert resp.status_code == 400


def test_missing_api_key_is_configuration_error(client):
    resp = client.post("/api/chat", json={"message": "When to sow wheat?"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Invalid API configuration"
    assert "OPENAI_API_KEY" in resp.json()["message"]


def test_structured_reply_returned(client, llm_key):
    llm = _fake_llm(json.dumps(ADVICE))
    with patch("krishi.llm.advisor.get_llm", return_value=llm):
        resp = client.post("/api/chat", json={
            "message": "My tomato leaves are curling",
            "crop": "Tomato",
            "lat": 12.97,
            "lon": 77.59,
            "lang": "kn-IN",
        })
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "data": ADVICE}

    prompt = llm.ainvoke.await_args.args[0][0].content
    assert "Question: My tomato leaves are curling" in prompt
    assert "Crop: Tomato" in prompt
    assert "Location: Latitude 12.97, Longitude 77.59" in prompt
    assert "Language preference: kn-IN" in prompt


def test_reply_wrapped_in_prose_is_salvaged(client, llm_key):
    reply = "Sure! Here you go:\n```json\n" + json.dumps({"advice_text": "Water less."}) + "\n```"
    with patch("krishi.llm.advisor.get_llm", return_value=_fake_llm(reply)):
        resp = client.post("/api/chat", json={"message": "Overwatering?"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["advice_text"] == "Water less."
    assert "consult" in data["fertilizer"]
    assert isinstance(data["pest_flags"], list)


def test_plain_text_reply_becomes_advice(client, llm_key):
    with patch("krishi.llm.advisor.get_llm", return_value=_fake_llm("Spray neem oil weekly.")):
        resp = client.post("/api/chat", json={"message": "Aphids?"})
    assert resp.status_code == 200
    assert resp.json()["data"]["advice_text"] == "Spray neem oil weekly."


def test_rate_limit_maps_to_429(client, llm_key):
    llm = _fake_llm(error=_openai_error(openai.RateLimitError, 429))
    with patch("krishi.llm.advisor.get_llm", return_value=llm):
        resp = client.post("/api/chat", json={"message": "Hello"})
    assert resp.status_code == 429
    assert resp.json()["error"] == "API quota exceeded"


def test_authentication_failure_maps_to_500(client, llm_key):
    llm = _fake_llm(error=_openai_error(openai.AuthenticationError, 401))
    with patch("krishi.llm.advisor.get_llm", return_value=llm):
        resp = client.post("/api/chat", json={"message": "Hello"})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Invalid API configuration"


def test_unexpected_failure_maps_to_500(client, llm_key):
    llm = _fake_llm(error=RuntimeError("socket closed"))
    with patch("krishi.llm.advisor.get_llm", return_value=llm):
        resp = client.post("/api/chat", json={"message": "Hello"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "message": "socket closed"}


def test_put_not_allowed(client):
    resp = client.put("/api/chat", json={"message": "hi"})
    assert resp.status_code == 405
