"""
Proposal request assembly.

The builder owns the fixed parts of a generation request (instructions and
output schema). Only the job description varies per call.
"""

import logging
from typing import Any, Dict, Optional

from proposalpilot.core.errors import InvalidInput, MissingCredential
from proposalpilot.core.prompts import SYSTEM_PROMPT
from proposalpilot.core.schemas import ProposalRequest, RESPONSE_SCHEMA

logger = logging.getLogger(__name__)


class ProposalRequestBuilder:
    """Validates preconditions and builds ProposalRequest objects."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        instructions: str = SYSTEM_PROMPT,
        output_schema: Optional[Dict[str, Any]] = None,
        require_credential: bool = True
    ):
        """
        Args:
            api_key: Service credential; checked on every build
            instructions: System instructions sent with each request
            output_schema: responseSchema descriptor (defaults to RESPONSE_SCHEMA)
            require_credential: False for the stub client, which needs no key
        """
        self.api_key = api_key
        self.instructions = instructions
        self.output_schema = output_schema if output_schema is not None else RESPONSE_SCHEMA
        self.require_credential = require_credential

    def build(self, job_description: Optional[str]) -> ProposalRequest:
        """
        Build a request for `job_description`.

        The text is passed through untouched; trimming is only used to
        detect empty input.

        Raises:
            InvalidInput: text is missing, empty or whitespace-only
            MissingCredential: a key is required but not configured
        """
        if job_description is None or not job_description.strip():
            raise InvalidInput("Please paste a job description to generate a proposal.")

        if self.require_credential and not self.api_key:
            raise MissingCredential(
                "API Key is missing. Please ensure GEMINI_API_KEY is set in your environment."
            )

        logger.debug(f"Built proposal request ({len(job_description)} chars)")
        return ProposalRequest(
            instructions=self.instructions,
            job_description=job_description,
            output_schema=self.output_schema,
        )
