"""Process-wide logging setup for the API and the ARQ worker."""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from tenantplans.core.config import get_settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Install a single stdout handler on the root logger.

    JSON lines by default (``LOG_JSON=false`` switches to plain text for
    local development). Safe to call more than once.
    """
    settings = get_settings()
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        handler.setFormatter(
            JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "name": "logger"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root.handlers = [handler]

    # Per-query SQL logging is too chatty outside debugging sessions
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
