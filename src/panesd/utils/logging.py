"""Logging setup utilities for panesd.

Configures the ``panesd`` logger hierarchy from the logging section of the
settings and quiets third-party loggers that would otherwise log every
discovery poll.
"""

from __future__ import annotations

import logging
import sys

from panesd.config.settings import LoggingConfig

# httpx logs each request at INFO; discovery polls every 100 ms while the
# browser is away.
NOISY_LOGGERS = ("httpx", "httpcore", "websockets")


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging for the panesd daemon.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger = logging.getLogger("panesd")
    root_logger.setLevel(level)

    formatter = logging.Formatter(config.format)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    root_logger.info("Logging initialized at %s level", config.level)
