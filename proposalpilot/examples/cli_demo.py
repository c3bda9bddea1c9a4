"""
ProposalPilot CLI Demo

Command-line run of the full flow: paste a job description, get the
structured proposal back.
Run with: python -m proposalpilot.examples.cli_demo [--mock] [FILE]

Reads the description from FILE, or from stdin (finish with Ctrl-D).
"""

import argparse
import asyncio
import logging
import sys

from proposalpilot.core.config import get_settings
from proposalpilot.core.errors import GenerationCancelled, GenerationError
from proposalpilot.core.llm_client import get_generation_client
from proposalpilot.services.clipboard import SECTION_TITLES, format_result_sections
from proposalpilot.services.notification import LifecycleEvent
from proposalpilot.services.proposal_service import create_proposal_service

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SIGNAL_COLORS = {
    'started': '\033[93m',  # Yellow
    'succeeded': '\033[92m',  # Green
    'failed': '\033[91m',  # Red
}
RESET = '\033[0m'
BOLD = '\033[1m'


def print_event(event: LifecycleEvent):
    """Pretty print a lifecycle signal."""
    color = SIGNAL_COLORS.get(event.signal.value, '')
    print(f"{color}{BOLD}[{event.signal.value.upper()}]{RESET} {event.message}")


def read_description(path: str = None) -> str:
    if path:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    print("Paste the job description, then press Ctrl-D:\n")
    return sys.stdin.read()


async def run_demo(job_description: str, use_mock: bool) -> int:
    settings = get_settings()
    client = get_generation_client(settings, use_mock=use_mock or settings.use_mock)
    service = create_proposal_service(settings, client=client)
    service.subscribe(print_event)

    try:
        result = await service.generate_proposal(job_description)
    except GenerationCancelled:
        print("Cancelled.")
        return 1
    except GenerationError as e:
        print(f"\nFailed to generate proposal: {e.message}")
        return 1

    print("\n" + "=" * 60)
    for name, text in format_result_sections(result).items():
        print(f"\n{BOLD}{SECTION_TITLES[name]}{RESET}")
        print(text)
    print("\n" + "=" * 60)
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Generate a proposal from a job description")
    parser.add_argument("file", nargs="?", help="File containing the job description")
    parser.add_argument("--mock", action="store_true", help="Use canned output, no API calls")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show retry and request logs")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    job_description = read_description(args.file)
    return asyncio.run(run_demo(job_description, args.mock))


if __name__ == "__main__":
    sys.exit(main())
