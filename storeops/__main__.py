#!/usr/bin/env python3
"""
Run the reporting API with uvicorn.

    python -m storeops

Settings are validated and the native Oracle client is loaded before the
server starts; if either fails the process exits with status 1.
"""

import sys

import uvicorn

from storeops.core.config.settings import get_settings
from storeops.core.exceptions import ClientBootstrapError, ConfigurationError
from storeops.core.logging import get_logger, setup_logging
from storeops.infrastructure.database.oracle import init_oracle_client

logger = get_logger(__name__)


def main() -> int:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.critical("Configuration rejected; exiting", **e.to_dict())
        return 1
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    if settings.oracle.is_configured and settings.oracle.ORACLE_THICK_MODE:
        try:
            init_oracle_client(settings.oracle)
        except ClientBootstrapError as e:
            logger.critical("Oracle client bootstrap failed; exiting", **e.to_dict())
            return 1

    uvicorn.run(
        "storeops.application.app:create_app",
        factory=True,
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
