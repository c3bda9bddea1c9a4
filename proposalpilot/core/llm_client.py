"""
Generation Client for ProposalPilot

Provides a single interface for turning a ProposalRequest into a validated
ProposalResult. Two implementations:
- GeminiGenerationClient: live HTTP call to the Gemini generateContent API
- MockGenerationClient: canned proposal for demos and tests (no API calls)

Usage:
    from proposalpilot.core.llm_client import get_generation_client

    client = get_generation_client()
    result = await client.generate(request)
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from proposalpilot.core.backoff import with_exponential_backoff
from proposalpilot.core.config import RetrySettings, Settings, get_settings
from proposalpilot.core.errors import (
    EmbeddedServiceError, EmptyResponse, GenerationCancelled, GenerationError,
    SchemaValidationError, TransportError
)
from proposalpilot.core.schemas import ProposalRequest, ProposalResult

logger = logging.getLogger(__name__)


# ============================================================================
# Response Parsing
# ============================================================================

def extract_response_text(body: Any) -> str:
    """
    Pull the generated text out of a generateContent response body.

    Raises:
        EmptyResponse: no candidate text present
    """
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        text = None

    if not isinstance(text, str) or not text:
        raise EmptyResponse("API returned no text content or an empty response.")
    return text


def _embedded_error_message(error: Any) -> str:
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return json.dumps(error)


def parse_proposal_payload(text: str) -> ProposalResult:
    """
    Parse the model's JSON text into a ProposalResult.

    A JSON object with an `error` key is a service error reported inside a
    successful response. Anything else must match the output schema exactly.

    Raises:
        EmbeddedServiceError: payload carries an `error` key
        SchemaValidationError: payload is not JSON or does not fit the schema
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaValidationError(f"Response is not valid JSON: {e}") from e

    if isinstance(data, dict) and "error" in data:
        raise EmbeddedServiceError(_embedded_error_message(data["error"]))

    if not isinstance(data, dict):
        raise SchemaValidationError(
            f"Expected a JSON object, got {type(data).__name__}"
        )

    try:
        return ProposalResult.model_validate(data)
    except ValidationError as e:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ]
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "payload" for err in errors)
        raise SchemaValidationError(
            f"Response does not match the proposal schema ({fields})",
            errors=errors
        ) from e


def _http_error_message(response: httpx.Response) -> str:
    """Server-provided error message if present, else the status text."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


# ============================================================================
# Clients
# ============================================================================

class GenerationClient(ABC):
    """Turns a ProposalRequest into a validated ProposalResult."""

    model: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        request: ProposalRequest,
        cancel_event: Optional[asyncio.Event] = None
    ) -> ProposalResult:
        """
        Generate a proposal.

        Raises:
            GenerationError: on any failure (no partial result)
            GenerationCancelled: if `cancel_event` fires before completion
        """


class GeminiGenerationClient(GenerationClient):
    """
    Gemini generateContent client.

    Each attempt is one HTTP POST with the credential in the `key` query
    parameter. Transport failures and empty responses are retried with
    exponential backoff; payload errors are not.
    """

    def __init__(
        self,
        api_key: Optional[str],
        endpoint: str,
        timeout: float = 60.0,
        retry: Optional[RetrySettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        model: Optional[str] = None
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key. May be None here; the request builder
                     rejects requests before they reach the network.
            endpoint: Full generateContent URL
            timeout: Per-attempt timeout in seconds
            retry: Backoff settings (attempt cap, delay, jitter)
            http_client: Shared httpx client; a short-lived one is opened per
                         call when omitted
            model: Model name, for logging
        """
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.retry = retry or RetrySettings()
        self.http_client = http_client
        self.model = model or endpoint.rsplit("/", 1)[-1].split(":", 1)[0]
        logger.info(f"Gemini client initialized with model: {self.model}")

    async def generate(
        self,
        request: ProposalRequest,
        cancel_event: Optional[asyncio.Event] = None
    ) -> ProposalResult:
        payload = request.to_payload()

        if self.http_client is not None:
            text = await self._generate_text(self.http_client, payload, cancel_event)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                text = await self._generate_text(client, payload, cancel_event)

        result = parse_proposal_payload(text)
        logger.info(
            f"Proposal generated: {len(result.client_summary)} summary points, "
            f"{len(result.suggested_skills)} skills"
        )
        return result

    async def _generate_text(
        self,
        client: httpx.AsyncClient,
        payload: Dict[str, Any],
        cancel_event: Optional[asyncio.Event]
    ) -> str:
        async def attempt() -> str:
            return await self._post_once(client, payload)

        return await with_exponential_backoff(
            attempt,
            self.retry.max_attempts,
            base_delay_ms=self.retry.base_delay_ms,
            max_jitter_ms=self.retry.max_jitter_ms,
            should_retry=lambda e: isinstance(e, GenerationError) and e.retryable,
            cancel_event=cancel_event,
        )

    async def _post_once(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> str:
        """One HTTP round trip. Returns the candidate text."""
        logger.debug(f"POST {self.endpoint}")

        try:
            response = await client.post(
                self.endpoint,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key or "",
                },
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out after {self.timeout:.0f}s") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {e.__class__.__name__}: {e}") from e

        if not response.is_success:
            message = _http_error_message(response)
            logger.error(f"Gemini API HTTP {response.status_code}: {message}")
            raise TransportError(
                f"API call failed: {response.status_code} - {message}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        return extract_response_text(body)


# Canned output used by the stub client
CANNED_PROPOSAL: Dict[str, Any] = {
    "clientSummary": [
        "Build a responsive React dashboard that visualises sales data from an existing REST API.",
        "Deliver within four weeks with clean, documented code and a short handover call.",
    ],
    "proposalDraft": (
        "Hi there,\n\n"
        "I read your post carefully and I understand you need a responsive React dashboard "
        "that pulls sales figures from your existing REST API and turns them into clear, "
        "interactive charts your team can rely on every day. I have built several dashboards "
        "like this over the past six years, most recently a revenue analytics tool for a "
        "retail client that cut their weekly reporting time from hours to minutes.\n\n"
        "My plan is simple. In the first week I will review your API, agree on the key metrics "
        "and sketch the layout with you. Weeks two and three cover the build itself: typed "
        "React components, charting with Recharts, sensible caching, and a layout that works "
        "on phones as well as desktops. The final week is for testing, polish, documentation "
        "and a handover call so your developers can extend the code with confidence.\n\n"
        "You will get regular progress updates, working previews you can click through, and "
        "code that is easy to maintain long after the project ends.\n\n"
        "Could we schedule a quick 15-minute call this week to confirm the metrics you care "
        "about most? I am ready to start right away.\n\n"
        "Best regards"
    ),
    "suggestedSkills": [
        "React",
        "TypeScript",
        "REST API Integration",
        "Data Visualization",
        "Recharts",
        "Responsive Design",
    ],
}


class MockGenerationClient(GenerationClient):
    """
    Mock generation client for testing without API calls.

    Returns a canned payload, validated through the same parser as the live
    client.
    """

    def __init__(self, delay_seconds: float = 0.0, payload: Optional[Dict[str, Any]] = None):
        """Initialize mock client."""
        logger.info("Using Mock Generation Client (no API calls)")
        self.model = "mock-gemini"
        self.delay_seconds = delay_seconds
        self.payload = payload if payload is not None else CANNED_PROPOSAL

    async def generate(
        self,
        request: ProposalRequest,
        cancel_event: Optional[asyncio.Event] = None
    ) -> ProposalResult:
        """Return mock response."""
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled("Request cancelled")
        return parse_proposal_payload(json.dumps(self.payload))


# ============================================================================
# Factory Function
# ============================================================================

def get_generation_client(
    settings: Optional[Settings] = None,
    use_mock: Optional[bool] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> GenerationClient:
    """
    Get a generation client instance.

    Args:
        settings: Application settings (defaults to get_settings())
        use_mock: Override settings.use_mock
        http_client: Optional shared httpx client for the live client

    Returns:
        Generation client instance
    """
    settings = settings or get_settings()
    if use_mock is None:
        use_mock = settings.use_mock

    if use_mock:
        return MockGenerationClient()

    return GeminiGenerationClient(
        api_key=settings.gemini.api_key,
        endpoint=settings.gemini.endpoint,
        timeout=settings.gemini.request_timeout,
        retry=settings.retry,
        http_client=http_client,
        model=settings.gemini.model,
    )
