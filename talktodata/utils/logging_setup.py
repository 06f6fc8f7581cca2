"""
Logging setup.

All modules log through `logging.getLogger(__name__)`, so everything sits
under the "talktodata" logger configured here. Passwords and session
tokens are never passed to a log call.
"""

import logging

from configs import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Configure structured logging for the package (idempotent)."""
    logger = logging.getLogger("talktodata")

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
