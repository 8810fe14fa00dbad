"""Logging configuration for agentcoord."""

from __future__ import annotations

import logging
import os

NOISY_LOGGERS = ("httpx", "openai", "httpcore", "urllib3", "uvicorn.access")


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    verbose: bool = False,
    logger_name: str = "agentcoord",
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    Args:
        level: Console level name when not verbose (e.g., "INFO", "WARNING")
        log_file: Path to log file (None for no file logging)
        verbose: Enable DEBUG level on console, overriding level
        logger_name: Logger to configure; every agentcoord module logs below it

    Returns:
        Configured logger instance
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else level.upper())
    console_handler.setFormatter(
        logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")
    )

    file_handler = None
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    # Repeated calls (tests, serve reloads) replace rather than stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(console_handler)
    if file_handler:
        logger.addHandler(file_handler)
    logger.propagate = False

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
