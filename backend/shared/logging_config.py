"""
Logging configuration for the application.
"""

import logging
import sys

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Configure application-wide logging.

    Safe to call more than once; the handler is only installed the first time,
    later calls just adjust the level.
    """
    global _configured

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not _configured:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
        _configured = True

    # Supabase's HTTP stack is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
