"""
Logging configuration for the salad cart application.

Usage:
    from salad_cart.logging_config import setup_logging
    setup_logging()  # Call once at application startup

Environment variables:
    LOG_LEVEL: Set to DEBUG, INFO, WARNING, ERROR, or CRITICAL (default: INFO)
    LOG_LOGGERS: Per-logger overrides, e.g.
        "salad_cart.cart.store=DEBUG,sqlalchemy.engine=INFO"
        Useful for following hydration and mirror writes for one cart
        without turning on DEBUG for everything else.
"""
import logging
import os
import sys
from typing import Dict, Optional

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Catalog calls go through requests/urllib3; mirror writes through SQLAlchemy
NOISY_LOGGERS = ["urllib3", "requests", "sqlalchemy.engine"]


def _normalize_level(level: Optional[str], default: str = "INFO") -> str:
    level = (level or default).strip().upper()
    return level if level in VALID_LEVELS else default


def parse_logger_overrides(spec: Optional[str]) -> Dict[str, str]:
    """
    Parse "name=LEVEL,name=LEVEL" into a dict.

    Entries without "=" or with an unknown level are skipped.
    """
    overrides: Dict[str, str] = {}
    if not spec:
        return overrides
    for item in spec.split(","):
        name, sep, level = item.partition("=")
        name = name.strip()
        level = level.strip().upper()
        if not sep or not name or level not in VALID_LEVELS:
            continue
        overrides[name] = level
    return overrides


def setup_logging(level: str = None, overrides: Optional[Dict[str, str]] = None) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If not provided, reads from LOG_LEVEL env var, defaults to INFO.
        overrides: Logger name -> level, applied last. If not provided,
                   parsed from the LOG_LOGGERS env var.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = _normalize_level(level)
    numeric_level = getattr(logging, level)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )

    logging.getLogger("salad_cart").setLevel(numeric_level)

    if level != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    if overrides is None:
        overrides = parse_logger_overrides(os.getenv("LOG_LOGGERS"))
    for name, logger_level in overrides.items():
        logging.getLogger(name).setLevel(getattr(logging, logger_level))

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured at %s level (overrides: %s)", level, overrides or "none")
