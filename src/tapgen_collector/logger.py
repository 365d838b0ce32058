"""
Logging configuration.

Console logging through the stdlib, configured once at process start.
"""

import logging
import sys


def setup_logging(log_level: str = "INFO") -> None:
    """
    Initialize logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout
    )
    # pymodbus is chatty at DEBUG/INFO about every socket event
    logging.getLogger("pymodbus").setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
