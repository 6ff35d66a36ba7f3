"""
Custom logging configuration to suppress per-request httpx logs
"""

import logging
import logging.config
from typing import Any, Dict


class HttpxRequestFilter(logging.Filter):
    """Filter to suppress httpx's one-line-per-request INFO logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop "HTTP Request: ..." lines below WARNING; the prober logs its own outcome."""
        if record.name.startswith("httpx") and record.levelno < logging.WARNING:
            if record.getMessage().startswith("HTTP Request:"):
                return False
        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Get logging configuration with per-request log suppression."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "httpx_request_filter": {
                "()": HttpxRequestFilter
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "http": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["httpx_request_filter"]
            }
        },
        "loggers": {
            "httpx": {
                "handlers": ["http"],
                "level": level,
                "propagate": False
            },
            "modelprobe": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"]
        }
    }
