"""Copy-ready text rendering for proposal sections."""

import json
from typing import Any, Dict

from proposalpilot.core.schemas import ProposalResult

BULLET = "•"

SECTION_TITLES = {
    "clientSummary": "Client Needs Summary",
    "proposalDraft": "Proposal Draft",
    "suggestedSkills": "Suggested Skills",
}


def format_section(content: Any) -> str:
    """
    Render one section for the clipboard.

    Lists become one bullet line per item, strings pass through unchanged,
    anything else is pretty-printed JSON.
    """
    if isinstance(content, (list, tuple)):
        return "\n".join(f"{BULLET} {item}" for item in content)
    if isinstance(content, str):
        return content
    return json.dumps(content, indent=2)


def format_result_sections(result: ProposalResult) -> Dict[str, str]:
    """Copy text for every section, keyed by wire field name."""
    return {name: format_section(value) for name, value in result.to_wire().items()}


def format_full_proposal(result: ProposalResult) -> str:
    """All sections with headings, in schema order."""
    sections = format_result_sections(result)
    blocks = [f"{SECTION_TITLES[name]}\n{text}" for name, text in sections.items()]
    return "\n\n".join(blocks)
