# ProposalPilot - AI-Assisted Freelance Proposal Drafting
# Version 0.1.0

"""
ProposalPilot turns a pasted job listing into a structured proposal using a
hosted text-generation model.

Layers:
1. Request Builder - Assemble instructions, job text and output schema
2. Generation Client - Call the model with retry/backoff and validate the result
3. Proposal Service - Single-flight session with cancel and lifecycle signals
4. Presentation - FastAPI form page, JSON API and CLI demo
"""

__version__ = "0.1.0"
