"""Logging configuration for structgraph.

Provides consistent structured logging setup across the CLI and library.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, List, Optional

import structlog

ENV_VAR = "STRUCTGRAPH_ENV"
DEFAULT_ENV = "development"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Default configuration for different environments
CONFIGS = {
    "development": {
        "level": "DEBUG",
        "enable_colors": True,
        "enable_json": False,
    },
    "production": {
        "level": "INFO",
        "enable_colors": False,
        "enable_json": True,
    },
    "testing": {
        "level": "WARNING",
        "enable_colors": False,
        "enable_json": False,
    },
}


def configure_logging(
    level: str = "INFO",
    enable_colors: bool = True,
    enable_json: bool = False,
    extra_processors: List[Any] | None = None,
) -> None:
    """Configure structured logging for structgraph.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        enable_colors: Enable colored output for console
        enable_json: Use JSON output format
        extra_processors: Additional structlog processors
    """
    level_value = LOG_LEVELS.get(level.upper())
    if level_value is None:
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level_value,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]

    if extra_processors:
        processors.extend(extra_processors)

    if enable_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=enable_colors and sys.stderr.isatty())
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def configure_for_environment(name: Optional[str] = None, **overrides: Any) -> str:
    """Apply one of the :data:`CONFIGS` presets.

    Args:
        name: Preset name; defaults to ``$STRUCTGRAPH_ENV`` or ``development``
        **overrides: Keyword arguments replacing preset values

    Returns:
        The name of the preset applied
    """
    env = (name or os.environ.get(ENV_VAR) or DEFAULT_ENV).lower()
    if env not in CONFIGS:
        raise ValueError(f"Unknown environment '{env}', expected one of {sorted(CONFIGS)}")

    settings = {**CONFIGS[env], **overrides}
    configure_logging(**settings)
    return env


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
