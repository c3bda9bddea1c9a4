"""
Proposal Service

Session facade between the presentation layer and the generation client:
1. Build request -> 2. Generate (with retry) -> 3. Publish result

Implements:
- State machine for the session (idle/pending/succeeded/failed/cancelled)
- Single in-flight request per session
- Cancellation between attempts and mid-request
- Lifecycle signals for loading, error and success rendering
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from proposalpilot.core.config import Settings, get_settings
from proposalpilot.core.errors import (
    GenerationCancelled, GenerationError, GenerationInProgress
)
from proposalpilot.core.llm_client import (
    GenerationClient, MockGenerationClient, get_generation_client
)
from proposalpilot.core.request_builder import ProposalRequestBuilder
from proposalpilot.core.schemas import ProposalResult, SessionState
from proposalpilot.services.notification import (
    LifecycleEventFactory, LifecycleNotifier, Listener
)

logger = logging.getLogger(__name__)


# ============================================================================
# State Machine
# ============================================================================

class SessionStateMachine:
    """
    Valid transitions:
    IDLE -> PENDING | FAILED (precondition error)
    PENDING -> SUCCEEDED | FAILED | CANCELLED
    SUCCEEDED | FAILED | CANCELLED -> PENDING | FAILED
    """

    TRANSITIONS: Dict[SessionState, List[SessionState]] = {
        SessionState.IDLE: [SessionState.PENDING, SessionState.FAILED],
        SessionState.PENDING: [SessionState.SUCCEEDED, SessionState.FAILED, SessionState.CANCELLED],
        SessionState.SUCCEEDED: [SessionState.PENDING, SessionState.FAILED],
        SessionState.FAILED: [SessionState.PENDING, SessionState.FAILED],
        SessionState.CANCELLED: [SessionState.PENDING, SessionState.FAILED],
    }

    @classmethod
    def can_transition(cls, from_state: SessionState, to_state: SessionState) -> bool:
        """Check if transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])


# ============================================================================
# Main Service
# ============================================================================

class ProposalService:
    """
    Runs proposal generations for one user session.

    Exposes `generate_proposal` and `cancel`; everything else is read-only
    state or subscription.
    """

    def __init__(
        self,
        client: GenerationClient,
        builder: ProposalRequestBuilder,
        notifier: Optional[LifecycleNotifier] = None
    ):
        """
        Initialize the service.

        Args:
            client: Live or mock generation client
            builder: Request builder holding instructions, schema and credential
            notifier: Lifecycle signal fan-out (a private one is created if omitted)
        """
        self.client = client
        self.builder = builder
        self.notifier = notifier or LifecycleNotifier()

        self._state = SessionState.IDLE
        self._latest_result: Optional[ProposalResult] = None
        self._last_error: Optional[GenerationError] = None
        self._task: Optional[asyncio.Future] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self.updated_at = datetime.utcnow()

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state == SessionState.PENDING

    @property
    def latest_result(self) -> Optional[ProposalResult]:
        return self._latest_result

    @property
    def last_error(self) -> Optional[GenerationError]:
        return self._last_error

    def subscribe(self, listener: Listener):
        self.notifier.subscribe(listener)

    def to_status(self) -> Dict:
        """Summary for status endpoints."""
        return {
            'state': self._state.value,
            'pending': self.is_pending,
            'result': self._latest_result.to_wire() if self._latest_result else None,
            'error': self._last_error.to_dict() if self._last_error else None,
            'model': self.client.model,
            'updated_at': self.updated_at.isoformat(),
        }

    def _transition(self, to_state: SessionState) -> bool:
        if SessionStateMachine.can_transition(self._state, to_state):
            logger.info(f"Session: {self._state.value} -> {to_state.value}")
            self._state = to_state
            self.updated_at = datetime.utcnow()
            return True

        logger.warning(f"Invalid transition: {self._state.value} -> {to_state.value}")
        return False

    def _fail(self, error: GenerationError):
        self._last_error = error
        self._transition(SessionState.FAILED)
        self.notifier.emit(LifecycleEventFactory.failed(error))

    # =========================================================================
    # Operations
    # =========================================================================

    async def generate_proposal(self, job_description: Optional[str]) -> ProposalResult:
        """
        Generate a proposal for `job_description`.

        Returns:
            The validated ProposalResult (also kept as `latest_result`)

        Raises:
            GenerationInProgress: another request is pending
            GenerationError: precondition, transport or payload failure
            GenerationCancelled: cancel() was called while pending
        """
        if self.is_pending:
            raise GenerationInProgress(
                "A proposal is already being generated. Wait for it to finish or cancel it."
            )

        try:
            request = self.builder.build(job_description)
        except GenerationError as e:
            logger.info(f"Request rejected before sending: {e.message}")
            self._fail(e)
            raise

        self._latest_result = None
        self._last_error = None
        self._cancel_event = asyncio.Event()
        self._transition(SessionState.PENDING)
        self.notifier.emit(LifecycleEventFactory.started(len(job_description)))

        cancel_event = self._cancel_event
        task = asyncio.ensure_future(self.client.generate(request, cancel_event=cancel_event))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if not cancel_event.is_set():
                # The caller itself is being cancelled
                task.cancel()
                self._transition(SessionState.CANCELLED)
                raise
            self._transition(SessionState.CANCELLED)
            raise GenerationCancelled("Proposal generation was cancelled") from None
        except GenerationCancelled:
            self._transition(SessionState.CANCELLED)
            raise
        except GenerationError as e:
            if cancel_event.is_set():
                self._transition(SessionState.CANCELLED)
                raise GenerationCancelled("Proposal generation was cancelled") from None
            logger.error(f"Proposal generation failed: {e.message}")
            self._fail(e)
            raise
        except Exception as e:
            logger.exception("Unexpected error during proposal generation")
            self._fail(GenerationError(f"Unexpected error: {e}"))
            raise
        finally:
            self._task = None
            self._cancel_event = None

        if cancel_event.is_set():
            self._transition(SessionState.CANCELLED)
            raise GenerationCancelled("Proposal generation was cancelled")

        self._latest_result = result
        self._transition(SessionState.SUCCEEDED)
        self.notifier.emit(LifecycleEventFactory.succeeded(result))
        return result

    def cancel(self) -> bool:
        """
        Abandon the pending request, if any.

        Pending retry delays end immediately and the in-flight HTTP call is
        cancelled. No result or error is applied.

        Returns:
            True if a pending request was cancelled
        """
        if not self.is_pending or self._cancel_event is None:
            return False

        logger.info("Cancelling pending proposal generation")
        self._cancel_event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True


# ============================================================================
# Factory
# ============================================================================

def create_proposal_service(
    settings: Optional[Settings] = None,
    client: Optional[GenerationClient] = None,
    notifier: Optional[LifecycleNotifier] = None
) -> ProposalService:
    """Create a service wired from settings."""
    settings = settings or get_settings()
    client = client or get_generation_client(settings)

    builder = ProposalRequestBuilder(
        api_key=settings.gemini.api_key,
        require_credential=not isinstance(client, MockGenerationClient),
    )
    return ProposalService(client=client, builder=builder, notifier=notifier)
