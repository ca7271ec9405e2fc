"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; this configures the
root logger once so their records reach stdout next to uvicorn's.
"""

import logging

from portal.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging() -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("portal").setLevel(level)
