"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from goalplanner.core.context import get_request_id

PLANNER_LOGGER = "goalplanner"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"
# Provider calls carry API keys in headers; keep transport request lines out of INFO logs.
QUIET_LOGGERS = ("httpx", "httpcore")


class RequestIdFilter(logging.Filter):
    """Stamp each record with the request id bound by the middleware."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO", debug: bool = False) -> None:
    """Configure application logging once at startup.

    ``debug`` lowers only the planner's own loggers to DEBUG, so prompt and
    provider diagnostics show up without third-party noise.
    """
    if getattr(configure_logging, "_configured", False):
        return

    planner_level = "DEBUG" if debug else log_level
    loggers = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    loggers[PLANNER_LOGGER] = {"level": planner_level}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"planner": {"format": LOG_FORMAT}},
            "filters": {"request_id": {"()": RequestIdFilter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "planner",
                    "level": planner_level,
                    "filters": ["request_id"],
                }
            },
            "loggers": loggers,
            "root": {"handlers": ["console"], "level": log_level},
        }
    )

    logging.getLogger(__name__).debug("Logging configured (root=%s, planner=%s)", log_level, planner_level)
    setattr(configure_logging, "_configured", True)
