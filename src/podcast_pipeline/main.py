"""Entry points for the pipeline worker and the API."""

import uvicorn
from ddtrace import patch_all

from podcast_pipeline.dependencies import get_worker
from podcast_pipeline.logging import setup_logging

logger = setup_logging()
patch_all()


def main():
    """Starts the pipeline worker."""
    logger.info("Starting podcast-pipeline worker")
    worker = get_worker()
    worker.start()


def serve_api():
    """Starts the HTTP API."""
    logger.info("Starting podcast-pipeline API")
    uvicorn.run(
        "podcast_pipeline.api:build_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_config=None,
    )


if __name__ == "__main__":
    main()
