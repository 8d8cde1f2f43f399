import asyncio

import aiohttp
import pytest

from config.constants import SAFETY_CATEGORIES
from translators import GeminiTranslatorService
from utils.errors import TranslationCallError


class FakeResponse:
    def __init__(self, status=200, body=None, text=""):
        self.status = status
        self._body = body
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type=None):
        return self._body

    async def text(self):
        return self._text


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []
        self.closed = False

    def post(self, url, json=None, headers=None):
        self.requests.append((url, json, headers))
        if self.error:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


def service(session):
    translator = GeminiTranslatorService(api_key="secret", model="gemini-2.5-flash", thinking_tokens=1024)
    translator.http_session = session
    return translator


@pytest.mark.unit
def test_payload_requests_structured_output():
    translator = service(None)
    schema = {"type": "OBJECT"}
    payload = translator._build_payload("prompt text", schema)

    assert payload["contents"] == [{"role": "user", "parts": [{"text": "prompt text"}]}]
    config = payload["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] is schema
    assert config["thinkingConfig"] == {"includeThoughts": False, "thinkingBudget": 1024}
    assert [s["category"] for s in payload["safetySettings"]] == SAFETY_CATEGORIES
    assert {s["threshold"] for s in payload["safetySettings"]} == {"BLOCK_NONE"}


@pytest.mark.unit
def test_parse_response_skips_thoughts():
    parsed = GeminiTranslatorService._parse_response({
        "candidates": [{
            "content": {"parts": [{"text": "thinking...", "thought": True}, {"text": '{"d":'}, {"text": "[]}"}]},
            "finishReason": "STOP",
        }],
        "usageMetadata": {"promptTokenCount": 10, "thoughtsTokenCount": 5, "candidatesTokenCount": 3},
    })
    assert parsed.text == '{"d":[]}'
    assert parsed.finish_reason == "STOP"
    assert parsed.usage == {"input": 10, "thoughts": 5, "output": 3}


@pytest.mark.unit
def test_parse_response_without_candidates_reports_block_reason():
    parsed = GeminiTranslatorService._parse_response({"promptFeedback": {"blockReason": "OTHER"}})
    assert parsed.text == ""
    assert parsed.finish_reason == "OTHER"


@pytest.mark.unit
def test_send_posts_to_model_endpoint():
    body = {"candidates": [{"content": {"parts": [{"text": '{"d":[]}'}]}, "finishReason": "STOP"}]}
    session = FakeSession(FakeResponse(body=body))
    translator = service(session)

    response = asyncio.run(translator.send("prompt", {}))

    url, payload, headers = session.requests[0]
    assert url.endswith("/models/gemini-2.5-flash:generateContent")
    assert headers == {"x-goog-api-key": "secret"}
    assert response.text == '{"d":[]}'
    assert translator.get_stats()["total_requests"] == 1


@pytest.mark.unit
def test_send_raises_on_http_error():
    session = FakeSession(FakeResponse(status=429, text="quota exceeded"))
    translator = service(session)

    with pytest.raises(TranslationCallError, match="429: quota exceeded"):
        asyncio.run(translator.send("prompt", {}))
    assert translator.get_stats()["failed_requests"] == 1


@pytest.mark.unit
def test_send_wraps_transport_errors():
    translator = service(FakeSession(error=aiohttp.ClientConnectionError("connection reset")))
    with pytest.raises(TranslationCallError, match="connection reset"):
        asyncio.run(translator.send("prompt", {}))


@pytest.mark.unit
def test_initialize_requires_api_key():
    translator = GeminiTranslatorService(api_key="", model="gemini-2.5-flash")
    with pytest.raises(TranslationCallError):
        asyncio.run(translator.initialize())


@pytest.mark.unit
def test_cleanup_closes_session():
    session = FakeSession()
    translator = service(session)
    asyncio.run(translator.cleanup())
    assert session.closed
    assert translator.http_session is None


@pytest.mark.unit
def test_send_rejects_non_object_body():
    translator = service(FakeSession(FakeResponse(body=[])))
    with pytest.raises(TranslationCallError, match="unexpected body: list"):
        asyncio.run(translator.send("prompt", {}))
    assert translator.get_stats()["failed_requests"] == 1
