"""Shared fixtures for the monitoring-loop tests."""

import json

import httpx
import pytest

from hummiguard.ai import AnalysisResult, Confidence
from hummiguard.monitor import (
    AnalyzerClient,
    FeederMonitorService,
    MonitorConfig,
    VirtualClock,
)
from hummiguard.vision import CaptureSourceError


class FakeCaptureSource:
    """In-memory stand-in for the camera."""

    def __init__(self, frame="ZmFrZS1qcGVn", fail_open=False):
        self.frame = frame
        self.fail_open = fail_open
        self.is_open = False
        self.open_calls = 0
        self.release_calls = 0
        self.captures = 0

    def open(self):
        self.open_calls += 1
        if self.fail_open:
            raise CaptureSourceError("permission denied")
        self.is_open = True

    def capture_base64(self):
        self.captures += 1
        if not self.is_open:
            return None
        return self.frame

    def release(self):
        self.release_calls += 1
        self.is_open = False


class ScriptedAnalyzer:
    """Analyzer that returns queued results and counts requests."""

    def __init__(self, *results):
        self.results = list(results)
        self.frames = []
        self.closed = False

    def analyze(self, image_base64):
        self.frames.append(image_base64)
        if image_base64 is None:
            return AnalysisResult.failure("Error: Failed to capture frame")
        if self.results:
            return self.results.pop(0)
        return reading(50)

    def close(self):
        self.closed = True


def reading(level, confidence=Confidence.HIGH, visible=True, description="feeder in view"):
    return AnalysisResult(
        level=level,
        confidence=confidence,
        description=description,
        feeder_visible=visible,
    )


def json_client(status_code, payload=None, text=None):
    """httpx client whose every request gets the same canned response."""
    requests = []

    def handler(request):
        requests.append(request)
        if text is not None:
            return httpx.Response(status_code, text=text)
        return httpx.Response(status_code, json=payload)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    client.requests = requests
    return client


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def camera():
    return FakeCaptureSource()


@pytest.fixture
def config(tmp_path):
    cfg = MonitorConfig(log_dir=None)
    cfg._config_file = str(tmp_path / "monitor_config.json")
    return cfg


@pytest.fixture
def cues():
    return []


@pytest.fixture
def jobs():
    """Deferred dispatcher: analysis cycles wait here until a test runs them."""
    return []


@pytest.fixture
def make_service(camera, config, clock, cues, jobs):
    def _make(analyzer=None, dispatch=None):
        return FeederMonitorService(
            capture_source=camera,
            analyzer_client=analyzer or ScriptedAnalyzer(),
            config=config,
            clock=clock,
            cue=cues.append,
            dispatch=dispatch or jobs.append,
            drive_timers=False,
        )

    return _make


@pytest.fixture
def endpoint_client():
    """AnalyzerClient factory backed by a canned endpoint response."""

    def _make(status_code, payload=None, text=None):
        http_client = json_client(status_code, payload=payload, text=text)
        client = AnalyzerClient(
            endpoint="http://monitor.test/api/analyze",
            log_dir=None,
            http_client=http_client,
        )
        return client, http_client

    return _make


def read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
