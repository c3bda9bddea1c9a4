"""Pytest fixtures and configuration for ProposalPilot tests."""

import json
import os
from typing import Any, Callable, Dict, List

import httpx
import pytest

# Set test environment variables before importing the app
os.environ.setdefault("GEMINI_API_KEY", "")
os.environ.setdefault("PROPOSALPILOT_USE_MOCK", "false")
os.environ.setdefault("PROPOSALPILOT_DEBUG", "true")

from proposalpilot.core.config import RetrySettings, get_settings  # noqa: E402
from proposalpilot.core.llm_client import GeminiGenerationClient  # noqa: E402

TEST_ENDPOINT = "https://gemini.test/v1beta/models/gemini-test:generateContent"


# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def sample_job_description() -> str:
    """A realistic pasted job post."""
    return (
        "We are looking for an experienced Python developer to build a data pipeline "
        "that ingests CSV exports from our CRM, cleans them, and loads them into "
        "PostgreSQL every night. You should be comfortable with pandas, SQL, Airflow "
        "and writing tests. Please describe similar projects you have delivered."
    )


@pytest.fixture
def valid_payload() -> Dict[str, Any]:
    """Model output that matches the proposal schema exactly."""
    return {
        "clientSummary": [
            "Nightly pipeline from CRM CSV exports into PostgreSQL.",
            "Data cleaning with pandas, orchestration with Airflow, tested code.",
        ],
        "proposalDraft": (
            "Hello,\n\nI have built several nightly ETL pipelines with pandas and Airflow "
            "that load cleaned CRM data into PostgreSQL. I would start by profiling your "
            "exports, then ship a tested DAG with clear alerts. Can we talk this week?"
        ),
        "suggestedSkills": ["Python", "pandas", "Apache Airflow", "PostgreSQL", "SQL", "ETL"],
    }


def gemini_body(text: str) -> Dict[str, Any]:
    """Wrap model text the way generateContent returns it."""
    return {
        "candidates": [
            {"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}
        ]
    }


@pytest.fixture
def make_gemini_body() -> Callable[[Any], Dict[str, Any]]:
    def _make(payload: Any) -> Dict[str, Any]:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return gemini_body(text)
    return _make


# ===========================================
# Mock Fixtures
# ===========================================

class RecordingTransport:
    """
    httpx transport that replays a scripted sequence of responses.

    Each entry is an httpx.Response, an exception instance to raise, or a
    callable taking the request. The last entry repeats once the script runs out.
    """

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(request)
        return step

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def recording_transport() -> Callable[[List[Any]], RecordingTransport]:
    return RecordingTransport


@pytest.fixture
def make_gemini_client():
    """Build a live client over a MockTransport with instant retries."""

    def _make(
        transport: RecordingTransport,
        max_attempts: int = 3,
        base_delay_ms: float = 0.0,
        max_jitter_ms: float = 0.0,
        api_key: str = "test-key"
    ) -> GeminiGenerationClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport.handler))
        return GeminiGenerationClient(
            api_key=api_key,
            endpoint=TEST_ENDPOINT,
            timeout=5.0,
            retry=RetrySettings(
                max_attempts=max_attempts,
                base_delay_ms=base_delay_ms,
                max_jitter_ms=max_jitter_ms,
            ),
            http_client=http_client,
        )

    return _make


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Settings are cached; clear between tests so env changes apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
