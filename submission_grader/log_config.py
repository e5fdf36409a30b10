"""Loguru configuration for the command-line entry point."""

import sys

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru for structured logging on stderr."""
    logger.remove()  # Avoid duplicate logs
    logger.add(
        sink=lambda msg: sys.stderr.write(msg),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "{extra} | "
            "<level>{message}</level>"
        ),
        level=level,
        serialize=False,
    )
