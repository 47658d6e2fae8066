from __future__ import annotations

import logging

from hiredesk.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")

_LOG_CONFIGURED = False


def configure_logging(settings: Settings | None = None) -> None:
    """Configure process-wide logging once; later calls are no-ops."""
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    if settings.app_env in {"staging", "production"}:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    _LOG_CONFIGURED = True
