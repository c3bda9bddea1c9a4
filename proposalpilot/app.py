"""
ProposalPilot web app entry point.

Configures logging from settings and serves the form page and JSON API.

Run with: python -m proposalpilot.app
"""

import logging

from proposalpilot.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from proposalpilot.api.routes import app  # noqa: E402


def main():
    """Run the server with uvicorn."""
    import uvicorn

    mode = "mock" if settings.use_mock else f"live ({settings.gemini.model})"
    logger.info(f"Starting {settings.app_name} in {mode} mode")
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
