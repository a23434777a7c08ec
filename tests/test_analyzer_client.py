"""Tests for the analysis endpoint client and its synthetic failures."""

import json

import httpx

from hummiguard.ai import Confidence
from hummiguard.monitor import AnalyzerClient


def assert_synthetic_failure(result, fragment):
    assert result.level == -1
    assert result.confidence is Confidence.LOW
    assert result.feeder_visible is False
    assert result.description.startswith("Error: ")
    assert fragment in result.description


def test_successful_response_is_normalized(endpoint_client):
    client, http_client = endpoint_client(200, {
        "level": 18,
        "confidence": "high",
        "description": "Low nectar",
        "feeder_visible": True,
    })

    result = client.analyze("aGVsbG8=")

    assert result.level == 18
    assert result.confidence is Confidence.HIGH
    assert result.feeder_visible is True
    assert result.timestamp is None

    sent = http_client.requests[0]
    assert sent.method == "POST"
    assert json.loads(sent.content) == {"image": "aGVsbG8="}


def test_error_field_is_surfaced_from_non_200(endpoint_client):
    client, _ = endpoint_client(429, {"error": "rate limited"})
    assert_synthetic_failure(client.analyze("aGVsbG8="), "rate limited")


def test_missing_api_key_is_just_another_failure(endpoint_client):
    client, _ = endpoint_client(500, {"error": "API key not configured"})
    assert_synthetic_failure(client.analyze("aGVsbG8="), "API key not configured")


def test_non_200_without_error_field_uses_generic_message(endpoint_client):
    client, _ = endpoint_client(502, text="<html>Bad Gateway</html>")
    assert_synthetic_failure(client.analyze("aGVsbG8="), "API request failed")


def test_unparseable_body_is_a_failure(endpoint_client):
    client, _ = endpoint_client(200, text="definitely not json")
    assert_synthetic_failure(client.analyze("aGVsbG8="), "No JSON found")


def test_body_without_level_is_a_failure(endpoint_client):
    client, _ = endpoint_client(200, {"confidence": "high"})
    assert_synthetic_failure(client.analyze("aGVsbG8="), "level")


def test_missing_frame_skips_the_request(endpoint_client):
    client, http_client = endpoint_client(200, {"level": 50, "feeder_visible": True})

    assert_synthetic_failure(client.analyze(None), "Failed to capture frame")
    assert http_client.requests == []


def test_transport_error_is_a_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = AnalyzerClient(
        endpoint="http://monitor.test/api/analyze",
        log_dir=None,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    assert_synthetic_failure(client.analyze("aGVsbG8="), "connection refused")


def test_timeout_is_a_failure():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = AnalyzerClient(
        endpoint="http://monitor.test/api/analyze",
        log_dir=None,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    assert_synthetic_failure(client.analyze("aGVsbG8="), "Request timed out")


def test_only_one_request_per_call(endpoint_client):
    client, http_client = endpoint_client(503, {"error": "overloaded"})
    client.analyze("aGVsbG8=")
    assert len(http_client.requests) == 1
