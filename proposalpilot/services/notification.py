"""
Lifecycle Notification Service

Delivers generation lifecycle signals to the presentation layer:
- started: a request left the form and is pending
- succeeded: a validated proposal is available
- failed: the request ended with an error

Subscribers are plain callables. A short in-memory history is kept so the
page can poll recent events.
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional

from proposalpilot.core.errors import GenerationError
from proposalpilot.core.schemas import ProposalResult

logger = logging.getLogger(__name__)


class LifecycleSignal(str, Enum):
    """Signals emitted by the proposal service."""

    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class LifecycleEvent:
    """A lifecycle signal with its payload."""

    signal: LifecycleSignal
    message: str
    data: Dict = field(default_factory=dict)

    # Metadata
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'signal': self.signal.value,
            'message': self.message,
            'data': self.data,
            'created_at': self.created_at.isoformat(),
        }


Listener = Callable[[LifecycleEvent], None]


class LifecycleNotifier:
    """Fan-out of lifecycle events to subscribers."""

    def __init__(self, history_size: int = 100):
        self._listeners: List[Listener] = []
        self._history: Deque[LifecycleEvent] = deque(maxlen=history_size)

    def subscribe(self, listener: Listener):
        """Register a listener; duplicates are ignored."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: LifecycleEvent):
        """
        Record the event and deliver it to every listener.

        A failing listener is logged and skipped; it never affects the
        generation outcome.
        """
        self._history.append(event)
        logger.info(f"LIFECYCLE [{event.signal.value}]: {event.message}")

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Lifecycle listener failed for '{event.signal.value}'")

    def get_all(self, limit: int = 50) -> List[LifecycleEvent]:
        """Most recent events, oldest first."""
        if limit <= 0:
            return []
        return list(self._history)[-limit:]

    def clear(self):
        self._history.clear()


# ============================================================================
# Event Factory - Common lifecycle events
# ============================================================================

class LifecycleEventFactory:
    """Factory for creating lifecycle events."""

    @staticmethod
    def started(description_chars: int) -> LifecycleEvent:
        return LifecycleEvent(
            signal=LifecycleSignal.STARTED,
            message="Generating proposal...",
            data={'description_chars': description_chars}
        )

    @staticmethod
    def succeeded(result: ProposalResult) -> LifecycleEvent:
        return LifecycleEvent(
            signal=LifecycleSignal.SUCCEEDED,
            message="Proposal ready",
            data={'result': result.to_wire()}
        )

    @staticmethod
    def failed(error: GenerationError) -> LifecycleEvent:
        return LifecycleEvent(
            signal=LifecycleSignal.FAILED,
            message=error.message,
            data={'error': error.to_dict()}
        )


# Global instance
_notifier: Optional[LifecycleNotifier] = None


def get_notifier() -> LifecycleNotifier:
    """Get or create the process-wide notifier."""
    global _notifier
    if _notifier is None:
        _notifier = LifecycleNotifier()
    return _notifier
