"""Logging utilities for mantapy modules."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger that inherits from the root logger.

    Loggers propagate to the root logger so ``basicConfig()`` works without
    any explicit ``setup_logging()`` call. A default level of WARNING is only
    applied while the root logger has no handlers.

    Args:
        name: Logger name (typically ``'mantapy.<module>'``)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger


PACKAGE_LOGGERS = (
    'mantapy',
    'mantapy.auth',
    'mantapy.client',
    'mantapy.async_client',
    'mantapy.request',
    'mantapy.transport',
    'mantapy.tree',
)


def setup_logging(level=logging.INFO):
    """
    Configure logging for mantapy modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    for logger_name in PACKAGE_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


def root_configured() -> bool:
    """True once handlers are attached to the root logger."""
    return bool(logging.getLogger().handlers)


def apply_log_level(level: int) -> bool:
    """
    Apply a configured level to the mantapy loggers.

    Only done while the root logger has no handlers; once the application
    has configured logging, mantapy loggers inherit from it.

    Returns:
        True if the level was applied
    """
    if root_configured():
        return False
    setup_logging(level)
    return True
