"""Run the proxy with uvicorn."""

import logging

import uvicorn

from .api import app
from .config import HOST, PORT, TARGET_URL, setup_file_logging

logger = logging.getLogger(__name__)


def main():
    setup_file_logging()
    logger.info("Starting ish2api server...")
    logger.info(f"Forwarding requests to: {TARGET_URL}")
    logger.info(
        f"OpenAI compatible endpoint available at: http://127.0.0.1:{PORT}/v1/chat/completions"
    )
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
