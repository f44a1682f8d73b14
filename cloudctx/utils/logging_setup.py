"""
Logging setup for the command line.

Library modules only create loggers; handlers are installed here, once, by
the script entry point.
"""

import logging
import sys

__all__ = [
    'setup_logging',
]

_configured = False


def setup_logging(level: str = "WARNING") -> None:
    """
    Send cloudctx log records to stderr.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
    """
    global _configured
    if _configured:
        return

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    # noisy libs
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    _configured = True
