"""
Custom logging configuration to suppress health check logs, plus the
listener that turns registry events into log records.
"""

import logging
import logging.config
from typing import Any, Dict

from browserhub.modules.session import SessionEvent
from browserhub.modules.session.events import (
    SESSION_LAUNCH_DISCARDED,
    SESSION_LAUNCH_FAILED,
    SESSION_TERMINATION_FAILED,
)

HEALTH_CHECK_PATHS = ("/health", "/healthz")


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check endpoint logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter out health check requests from uvicorn access logs."""
        if record.name == "uvicorn.access":
            message = record.getMessage()
            if "GET" in message and any(f"{path} " in message for path in HEALTH_CHECK_PATHS):
                return False
        return True


class LoggingEventListener:
    """Session event listener that writes one log line per event."""

    _WARNING_EVENTS = {SESSION_LAUNCH_FAILED, SESSION_LAUNCH_DISCARDED, SESSION_TERMINATION_FAILED}

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger("browserhub.events")

    def __call__(self, event: SessionEvent) -> None:
        level = logging.WARNING if event.type in self._WARNING_EVENTS else logging.INFO
        details = " ".join(f"{key}={value}" for key, value in event.data.items())
        subject = f"session {event.session_id}" if event.session_id else "registry"
        self.logger.log(level, f"{event.type}: {subject} {details}".rstrip())


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with health check suppression."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {
                "()": HealthCheckFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "access": {
                "format": "%(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"]
            }
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": level,
                "propagate": False
            },
            "browserhub": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the logging configuration to the running process."""
    logging.config.dictConfig(get_logging_config(level))
