"""Entry: validate configuration and start the API server."""
import logging
import sys

import uvicorn

from cassette.config import Settings
from cassette.exceptions import ConfigError

logger = logging.getLogger("cassette")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    settings = Settings.from_env()
    try:
        settings.validate()
    except ConfigError as e:
        logger.critical("%s Aborting.", e)
        sys.exit(1)
    logger.info("Webserver starting on %s:%d", settings.api_host, settings.api_port)
    uvicorn.run(
        "cassette.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.dev_mode,
    )
