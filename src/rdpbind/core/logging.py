"""
Loguru configuration for the application.

This module configures loguru with:
- Automatic run id in each log
- Configurable format from settings
- Redirection of standard library logs to loguru (pywinrm, urllib3)
"""

import logging
import sys
from typing import Any

from loguru import logger

from rdpbind.config import settings
from rdpbind.core.run_context import run_id_context


def add_run_id(record: dict[str, Any]) -> bool:
    """
    Adds the run_id to the log record.

    The run_id is obtained from the current binding run,
    allowing tracking of logs from the same invocation.

    Args:
        record: Loguru record

    Returns:
        True to indicate that the filter passed
    """
    run_id = run_id_context.get()
    record["extra"]["run_id"] = run_id if run_id else "N/A"
    return True


def configure_logger(level: str | None = None) -> None:
    """
    Configures loguru with application settings.

    This function:
    1. Removes default loguru handlers
    2. Adds handler to stderr with custom configuration
    3. Configures level, format, colorization, etc.

    Args:
        level: Optional level overriding settings.log_level
    """
    logger.remove()

    logger.add(
        sink=sys.stderr,
        level=(level or settings.log_level).upper(),
        format=settings.log_format,
        filter=add_run_id,
        colorize=sys.stderr.isatty(),
        serialize=False,
        backtrace=True,
        diagnose=False,
        enqueue=settings.logger_enqueue,
    )


# Configure logger when importing the module
configure_logger()


__all__ = ["logger", "InterceptHandler", "configure_logger", "intercept_standard_logging"]


class InterceptHandler(logging.Handler):
    """
    Handler to redirect standard logging logs to loguru.

    pywinrm and its HTTP stack log through the standard library; this
    handler sends those records through the loguru sink instead.
    """

    def emit(self, record: logging.LogRecord) -> None:
        """
        Redirects a standard logging record to loguru.

        Args:
            record: logging.LogRecord record
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def intercept_standard_logging() -> None:
    """
    Configures redirection of standard logging to loguru.

    Intercepts logs from:
    - winrm (remote PowerShell sessions)
    - requests / urllib3 (WinRM HTTP transport)

    Call this function once from the CLI entry point.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.WARNING)

    for logger_name in ["winrm", "requests", "urllib3"]:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False
