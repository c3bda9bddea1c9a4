"""Tests for the FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

from proposalpilot.api import routes
from proposalpilot.core.config import GeminiSettings
from proposalpilot.core.errors import GenerationCancelled
from proposalpilot.core.llm_client import CANNED_PROPOSAL, GeminiGenerationClient, MockGenerationClient
from proposalpilot.core.request_builder import ProposalRequestBuilder
from proposalpilot.services.notification import LifecycleNotifier
from proposalpilot.services.proposal_service import ProposalService


def install_service(monkeypatch, client, builder=None) -> ProposalService:
    notifier = LifecycleNotifier()
    service = ProposalService(
        client=client,
        builder=builder or ProposalRequestBuilder(require_credential=False),
        notifier=notifier,
    )
    monkeypatch.setattr(routes, "proposal_service", service)
    monkeypatch.setattr(routes, "notifier", notifier)
    return service


@pytest.fixture
def client(monkeypatch):
    """Test client backed by the mock generation client."""
    install_service(monkeypatch, MockGenerationClient())
    with TestClient(routes.app) as test_client:
        yield test_client


class TestProposalEndpoint:
    """Tests for POST /api/proposals."""

    def test_generate_success(self, client, sample_job_description):
        response = client.post("/api/proposals", json={"job_description": sample_job_description})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["result"] == CANNED_PROPOSAL
        assert data["copy_text"]["clientSummary"].startswith("• ")
        assert data["copy_text"]["proposalDraft"] == CANNED_PROPOSAL["proposalDraft"]

    @pytest.mark.parametrize("body", [{"job_description": "   "}, {"job_description": ""}, {}])
    def test_blank_description(self, client, body):
        response = client.post("/api/proposals", json=body)

        assert response.status_code == 400
        assert response.json()["detail"] == "Please paste a job description to generate a proposal."

    def test_embedded_service_error(self, monkeypatch, sample_job_description):
        install_service(monkeypatch, MockGenerationClient(payload={"error": {"message": "quota exceeded"}}))

        with TestClient(routes.app) as test_client:
            response = test_client.post("/api/proposals", json={"job_description": sample_job_description})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail.startswith("Failed to generate proposal: quota exceeded.")
        assert "verify your API key" in detail

    def test_missing_credential(self, monkeypatch, sample_job_description):
        gemini = GeminiSettings(api_key=None)
        install_service(
            monkeypatch,
            GeminiGenerationClient(api_key=None, endpoint=gemini.endpoint),
            builder=ProposalRequestBuilder(api_key=None),
        )

        with TestClient(routes.app) as test_client:
            response = test_client.post("/api/proposals", json={"job_description": sample_job_description})

        assert response.status_code == 500
        assert "API Key is missing" in response.json()["detail"]

    def test_cancelled_is_not_an_error(self, monkeypatch, sample_job_description):
        service = install_service(monkeypatch, MockGenerationClient())

        async def cancelled(job_description):
            raise GenerationCancelled("Proposal generation was cancelled")

        monkeypatch.setattr(service, "generate_proposal", cancelled)

        with TestClient(routes.app) as test_client:
            response = test_client.post("/api/proposals", json={"job_description": sample_job_description})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["cancelled"] is True
        assert data["result"] is None
        assert "detail" not in data


class TestStatusEndpoints:
    """Tests for status, events and cancel."""

    def test_status_after_generation(self, client, sample_job_description):
        client.post("/api/proposals", json={"job_description": sample_job_description})

        response = client.get("/api/proposals/status")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "succeeded"
        assert data["pending"] is False
        assert data["result"] == CANNED_PROPOSAL
        assert data["copy_text"]["suggestedSkills"].count("• ") == len(CANNED_PROPOSAL["suggestedSkills"])

    def test_status_when_idle(self, client):
        data = client.get("/api/proposals/status").json()

        assert data["state"] == "idle"
        assert data["result"] is None
        assert "copy_text" not in data

    def test_events(self, client, sample_job_description):
        client.post("/api/proposals", json={"job_description": sample_job_description})

        events = client.get("/api/proposals/events").json()["events"]

        assert [e["signal"] for e in events] == ["started", "succeeded"]

    def test_events_limit(self, client, sample_job_description):
        client.post("/api/proposals", json={"job_description": sample_job_description})

        events = client.get("/api/proposals/events", params={"limit": 1}).json()["events"]

        assert [e["signal"] for e in events] == ["succeeded"]

    def test_cancel_with_nothing_pending(self, client):
        response = client.post("/api/proposals/cancel")

        assert response.status_code == 200
        assert response.json() == {"cancelled": False}


class TestPages:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["model"] == "mock-gemini"

    def test_index_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "Generate Proposal" in response.text
        assert "const MIN_CHARS = 50;" in response.text
        assert "{{MIN_DESCRIPTION_CHARS}}" not in response.text
        assert "if (data.cancelled)" in response.text
