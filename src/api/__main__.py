"""Entry point for running the API server."""
import logging

import uvicorn

from core.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Configure logging from settings and serve the app factory with uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting server on %s:%s", settings.host, settings.port)
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
