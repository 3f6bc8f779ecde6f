"""
Logging setup for the response analyzer.

Log lines go to stdout with a timestamp, level and module name. The level
comes from ``ANALYZER_LOG_LEVEL`` and is applied once by ``main.py``; request
logs from httpx are raised to WARNING so each relayed call is logged once,
by the relay itself.

    logger = get_logger(__name__)
    logger.info("Relaying %s %s%s", method, settings.backend_url, path)
"""

import logging
import sys

_configured = False


def setup_logging(level: str = "INFO") -> None:
    """Install the stdout handler at ``level``; only the first call has an effect."""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger named after the calling module."""
    return logging.getLogger(name)
