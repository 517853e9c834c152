"""
Logging setup (loguru).

Call configure_logging() once at startup. Everything else just does
`from loguru import logger`.
"""

import sys

from loguru import logger

from backoffice.core.config import get_settings


def configure_logging(level: str = None) -> None:
    """Replace loguru's default sink with one at the configured level."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan> - {message}",
    )


def log_structural(message: str) -> None:
    """Structural errors get their own marker so they can be alerted on."""
    logger.bind(structural=True).error(f"[STRUCTURAL] {message}")
