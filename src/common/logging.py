"""Structured logging configuration for the magazine AI section engine.

Logs go to stderr so the CLI can print its result JSON on stdout.
MAGAZINE_AI_LOG_LEVEL (e.g. DEBUG) overrides the default level.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "MAGAZINE_AI_LOG_LEVEL"

# Provider SDK loggers that log every HTTP request at INFO
SDK_LOGGERS = ("openai", "anthropic", "httpx")


def resolve_level(level: int | None = None) -> int:
    """Explicit level, else MAGAZINE_AI_LOG_LEVEL, else INFO."""
    if level is not None:
        return level
    name = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    resolved = logging.getLevelName(name) if name else logging.INFO
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: int | None = None,
    module_name: str = "magazine_ai",
) -> logging.Logger:
    """Configure and return a logger with consistent formatting.

    Args:
        level: Logging level (default from MAGAZINE_AI_LOG_LEVEL, else INFO).
        module_name: Name for the logger instance.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(module_name)

    if logger.handlers:
        return logger

    level = resolve_level(level)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def quiet_sdk_loggers(level: int = logging.WARNING) -> None:
    """Raise the provider SDK loggers to level so batch progress stays readable."""
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(level)
