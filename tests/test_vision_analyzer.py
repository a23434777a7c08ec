"""Tests for the server-side vision analyzer against a mocked Messages API."""

import json

import httpx
import pytest

from hummiguard.ai import (
    AIConfig,
    AIService,
    AnalysisAPIError,
    Confidence,
    MissingAPIKeyError,
    VisionAnalyzer,
)


def messages_api(status_code, payload=None, text=None):
    requests = []

    def handler(request):
        requests.append(request)
        if text is not None:
            return httpx.Response(status_code, text=text)
        return httpx.Response(status_code, json=payload)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    client.requests = requests
    return client


def text_reply(text):
    return {"content": [{"type": "text", "text": text}]}


def make_analyzer(http_client, api_key="sk-test"):
    return VisionAnalyzer(
        api_key=api_key,
        base_url="https://anthropic.test/v1/",
        model="claude-sonnet-4-20250514",
        log_dir=None,
        http_client=http_client,
    )


def test_request_carries_image_and_prompt():
    http_client = messages_api(200, text_reply('{"level": 60, "confidence": "medium", '
                                               '"description": "half", "feeder_visible": true}'))
    result = make_analyzer(http_client).analyze("aW1hZ2U=")

    assert result.level == 60
    assert result.confidence is Confidence.MEDIUM

    request = http_client.requests[0]
    assert str(request.url) == "https://anthropic.test/v1/messages"
    assert request.headers["x-api-key"] == "sk-test"
    assert request.headers["anthropic-version"] == "2023-06-01"

    body = json.loads(request.content)
    assert body["model"] == "claude-sonnet-4-20250514"
    assert body["max_tokens"] == 1000
    image_block, text_block = body["messages"][0]["content"]
    assert image_block["source"] == {"type": "base64", "media_type": "image/jpeg", "data": "aW1hZ2U="}
    assert "HummiGuard" in text_block["text"]


def test_json_wrapped_in_prose_is_extracted():
    reply = 'Here is my answer:\n```json\n{"level": 12, "confidence": "high", ' \
            '"description": "almost empty", "feeder_visible": true}\n```'
    result = make_analyzer(messages_api(200, text_reply(reply))).analyze("aW1hZ2U=")

    assert result.level == 12
    assert result.description == "almost empty"


def test_first_text_block_is_used():
    payload = {"content": [
        {"type": "thinking", "thinking": "..."},
        {"type": "text", "text": '{"level": 90, "feeder_visible": true}'},
        {"type": "text", "text": '{"level": 5, "feeder_visible": true}'},
    ]}
    result = make_analyzer(messages_api(200, payload)).analyze("aW1hZ2U=")

    assert result.level == 90


def test_unparseable_reply_falls_back():
    result = make_analyzer(messages_api(200, text_reply("I can't tell."))).analyze("aW1hZ2U=")

    assert result.level == -1
    assert result.confidence is Confidence.LOW
    assert result.description == "Could not parse AI response"
    assert result.feeder_visible is False


def test_upstream_error_keeps_status_and_message():
    http_client = messages_api(429, {"type": "error", "error": {"type": "rate_limit_error",
                                                                "message": "rate limited"}})

    with pytest.raises(AnalysisAPIError) as excinfo:
        make_analyzer(http_client).analyze("aW1hZ2U=")

    assert excinfo.value.status_code == 429
    assert excinfo.value.message == "rate limited"


def test_upstream_error_without_body_uses_generic_message():
    with pytest.raises(AnalysisAPIError) as excinfo:
        make_analyzer(messages_api(503, text="upstream down")).analyze("aW1hZ2U=")

    assert excinfo.value.status_code == 503
    assert excinfo.value.message == "API request failed"


def test_missing_api_key_sends_nothing():
    http_client = messages_api(200, text_reply("{}"))

    with pytest.raises(MissingAPIKeyError) as excinfo:
        make_analyzer(http_client, api_key="").analyze("aW1hZ2U=")

    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "API key not configured"
    assert http_client.requests == []


def test_ai_service_builds_analyzer_lazily():
    service = AIService(AIConfig(api_key="", model="claude-sonnet-4-20250514", log_dir=None))

    assert service.get_status() == {
        "provider": "anthropic",
        "model": "claude-sonnet-4-20250514",
        "api_key_configured": False,
        "vision_available": False,
    }

    analyzer = service.vision()
    assert service.vision() is analyzer
    assert analyzer.base_url == "https://api.anthropic.com/v1"
    assert service.get_status()["vision_available"] is True
