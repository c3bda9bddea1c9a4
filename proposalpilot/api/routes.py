"""
FastAPI Routes for ProposalPilot

Form page plus JSON endpoints for generating, cancelling and inspecting
proposals.

Run with: uvicorn proposalpilot.api.routes:app --reload
"""

import logging
import os
from datetime import datetime
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from proposalpilot import __version__
from proposalpilot.core.config import get_settings
from proposalpilot.core.errors import (
    GenerationCancelled, GenerationError, GenerationInProgress,
    InvalidInput, MissingCredential
)
from proposalpilot.services.clipboard import format_result_sections
from proposalpilot.services.notification import get_notifier
from proposalpilot.services.proposal_service import create_proposal_service

logger = logging.getLogger(__name__)

STATIC_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "static")

# ============================================================================
# FastAPI App Setup
# ============================================================================

app = FastAPI(
    title="ProposalPilot API",
    description="Structured freelance proposals from pasted job descriptions",
    version=__version__
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
settings = get_settings()
notifier = get_notifier()
proposal_service = create_proposal_service(settings, notifier=notifier)


# ============================================================================
# Request/Response Models
# ============================================================================

class GenerateProposalRequest(BaseModel):
    """Proposal generation request."""
    job_description: Optional[str] = None


class ProposalResponse(BaseModel):
    """Generated proposal with copy-ready text per section. Empty when cancelled."""
    success: bool
    cancelled: bool = False
    result: Optional[Dict] = None
    copy_text: Dict[str, str] = {}


def _error_detail(error: GenerationError) -> str:
    if isinstance(error, (InvalidInput, GenerationInProgress)):
        return error.message
    return (
        f"Failed to generate proposal: {error.message}. "
        "Please verify your API key and try again."
    )


def _status_code_for(error: GenerationError) -> int:
    if isinstance(error, InvalidInput):
        return 400
    if isinstance(error, GenerationInProgress):
        return 409
    if isinstance(error, MissingCredential):
        return 500
    return 502


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__,
        "model": proposal_service.client.model,
    }


# ============================================================================
# Proposal Endpoints
# ============================================================================

@app.post("/api/proposals", response_model=ProposalResponse)
async def generate_proposal(request: GenerateProposalRequest):
    """
    Generate a proposal for the pasted job description.

    Replaces any previous result for this session.
    """
    try:
        result = await proposal_service.generate_proposal(request.job_description)
    except GenerationCancelled:
        logger.info("Proposal generation cancelled by user")
        return ProposalResponse(success=False, cancelled=True)
    except GenerationError as e:
        logger.error(f"Proposal error ({e.kind}): {e.message}")
        raise HTTPException(status_code=_status_code_for(e), detail=_error_detail(e))

    return ProposalResponse(
        success=True,
        result=result.to_wire(),
        copy_text=format_result_sections(result),
    )


@app.post("/api/proposals/cancel")
async def cancel_proposal():
    """Abandon the pending generation, if any."""
    return {"cancelled": proposal_service.cancel()}


@app.get("/api/proposals/status")
async def get_proposal_status():
    """Current session state, latest result and last error."""
    status = proposal_service.to_status()
    if status["result"]:
        status["copy_text"] = format_result_sections(proposal_service.latest_result)
    return status


@app.get("/api/proposals/events")
async def get_proposal_events(limit: int = 50):
    """Recent lifecycle events, oldest first."""
    return {"events": [event.to_dict() for event in notifier.get_all(limit)]}


# ============================================================================
# Form Page
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def serve_index():
    """Serve the form page."""
    html_path = os.path.join(STATIC_DIR, "index.html")
    if os.path.exists(html_path):
        with open(html_path, 'r', encoding='utf-8') as f:
            html = f.read()
        return html.replace("{{MIN_DESCRIPTION_CHARS}}", str(settings.min_description_chars))
    return "<h1>ProposalPilot</h1><p>index.html not found</p>"
