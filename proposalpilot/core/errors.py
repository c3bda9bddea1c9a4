"""
Error taxonomy for proposal generation.

Every failure surfaced to a caller is a GenerationError subclass carrying a
human-readable message. The `retryable` flag tells the backoff executor which
failures are worth another attempt.
"""

from typing import Any, Dict, List, Optional


class GenerationError(Exception):
    """Base class for all proposal generation failures."""

    kind: str = "generation_error"
    retryable: bool = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses."""
        return {
            "kind": self.kind,
            "message": self.message,
            "status_code": self.status_code,
        }


class InvalidInput(GenerationError):
    """Job description is empty or whitespace-only."""

    kind = "invalid_input"


class MissingCredential(GenerationError):
    """No API key configured for the live service."""

    kind = "missing_credential"


class TransportError(GenerationError):
    """Network failure, timeout or non-2xx HTTP status."""

    kind = "transport_error"
    retryable = True


class EmptyResponse(GenerationError):
    """Service answered successfully but without usable text."""

    kind = "empty_response"
    retryable = True


class EmbeddedServiceError(GenerationError):
    """Service reported an error inside a 200 response body."""

    kind = "embedded_service_error"


class SchemaValidationError(GenerationError):
    """Parsed payload does not match the proposal output schema."""

    kind = "schema_validation_error"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class GenerationInProgress(GenerationError):
    """A request is already pending for this session."""

    kind = "generation_in_progress"


class GenerationCancelled(Exception):
    """
    The pending request was abandoned by the caller.

    Not a GenerationError: cancellation is not a failure and is never
    reported through the `failed` lifecycle signal.
    """
