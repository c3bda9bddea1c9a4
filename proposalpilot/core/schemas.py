"""
Pydantic schemas for data validation and LLM structured outputs.

These schemas ensure:
1. Generation requests are immutable once built
2. LLM outputs conform to the proposal output schema
3. Session state moves through a known set of values
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from proposalpilot.core.prompts import build_user_query


# ============================================================================
# Output Schema (sent to the model as responseSchema)
# ============================================================================

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "clientSummary": {
            "type": "ARRAY",
            "description": "2-3 highly concise bullet points summarizing the core client needs and deliverables.",
            "items": {"type": "STRING"},
        },
        "proposalDraft": {
            "type": "STRING",
            "description": "A professional, persuasive proposal draft (150-250 words) that addresses all client needs and includes a final call to action. Use a friendly, experienced tone.",
        },
        "suggestedSkills": {
            "type": "ARRAY",
            "description": "A list of 5-8 relevant technical keywords/skills extracted from the job description.",
            "items": {"type": "STRING"},
        },
    },
    "required": ["clientSummary", "proposalDraft", "suggestedSkills"],
    "propertyOrdering": ["clientSummary", "proposalDraft", "suggestedSkills"],
}


# ============================================================================
# Enums for State Management
# ============================================================================

class SessionState(str, Enum):
    """States of a proposal generation session."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ============================================================================
# Generation Request
# ============================================================================

class ProposalRequest(BaseModel):
    """A fully assembled generation request. Built fresh per submission."""

    instructions: str
    job_description: str
    output_schema: Dict[str, Any] = Field(default_factory=lambda: dict(RESPONSE_SCHEMA))

    model_config = ConfigDict(frozen=True)

    @property
    def user_query(self) -> str:
        return build_user_query(self.job_description)

    def to_payload(self) -> Dict[str, Any]:
        """Render the generateContent request body."""
        return {
            "contents": [{"parts": [{"text": self.user_query}]}],
            "systemInstruction": {"parts": [{"text": self.instructions}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": self.output_schema,
            },
        }


# ============================================================================
# Generation Result
# ============================================================================

class ProposalResult(BaseModel):
    """Structured proposal returned by the model. Only built from validated payloads."""

    client_summary: List[StrictStr] = Field(
        alias="clientSummary",
        min_length=2,
        max_length=3,
        description="2-3 short bullet points on client needs"
    )
    proposal_draft: StrictStr = Field(
        alias="proposalDraft",
        min_length=1,
        description="Proposal text, roughly 150-250 words"
    )
    suggested_skills: List[StrictStr] = Field(
        alias="suggestedSkills",
        min_length=5,
        description="At least five relevant skills"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        """Dump with the service's field names."""
        return self.model_dump(by_alias=True)
