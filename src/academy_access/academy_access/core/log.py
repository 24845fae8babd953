from __future__ import annotations

import logging
import logging.config

from .constants import LOG_FORMAT

# "academy_access" when installed, "src.academy_access.academy_access" from a checkout.
_PACKAGE_LOGGER = __name__.rsplit(".", 2)[0]


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the package logger."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "loggers": {
                _PACKAGE_LOGGER: {
                    "handlers": ["console"],
                    "level": str(level).upper(),
                    "propagate": False,
                }
            },
        }
    )
