import os

import logging.config


def configure_logging(level=None):
    """
    Sends the ``mwoauthclient`` loggers to the console.  The level defaults
    to the ``MWOAUTH_LOG_LEVEL`` environment variable, then ``INFO``.
    """
    if level is None:
        level = os.environ.get("MWOAUTH_LOG_LEVEL", "INFO")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "mwoauthclient": {
                    "format": "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "mwoauthclient",
                },
            },
            "loggers": {
                "mwoauthclient": {
                    "handlers": ["console"],
                    "level": level.upper(),
                    "propagate": False,
                },
            },
        }
    )
