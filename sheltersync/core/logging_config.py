"""Process-wide logging configuration."""

from __future__ import annotations

import logging
import logging.config

from sheltersync.security.logging_filters import SensitiveFilter

_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a console handler that tags records with the request id."""

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "correlation_id": {
                    "()": "asgi_correlation_id.CorrelationIdFilter",
                    "uuid_length": 32,
                    "default_value": "-",
                },
                "sensitive": {"()": SensitiveFilter},
            },
            "formatters": {"console": {"format": _FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "filters": ["correlation_id", "sensitive"],
                }
            },
            "loggers": {
                "sheltersync": {"level": level.upper(), "propagate": True},
                "uvicorn.access": {"level": "INFO"},
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
        }
    )
    for _logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error", ""):
        _logger = logging.getLogger(_logger_name)
        if not any(isinstance(flt, SensitiveFilter) for flt in _logger.filters):
            _logger.addFilter(SensitiveFilter())
