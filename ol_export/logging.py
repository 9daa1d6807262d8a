"""
Logging configuration module for the dump exporter.

Standard output carries the ndJSON stream, so console logging always goes
to standard error.
"""

import sys
import logging
import structlog
from typing import Optional, Union


def configure_logging(
    console_level: Union[int, str] = logging.INFO,
    file_level: Union[int, str] = logging.DEBUG,
    log_file: Optional[str] = None,
):
    """
    Configure structured logging for the application.

    Args:
        console_level: Logging level for console (stderr) output
        file_level: Logging level for file output
        log_file: Optional path to a JSON log file
    """
    console_level = logging.getLevelName(console_level.upper()) if isinstance(console_level, str) else console_level
    file_level = logging.getLevelName(file_level.upper()) if isinstance(file_level, str) else file_level

    timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S")

    pre_chain = [
        timestamper,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        foreign_pre_chain=pre_chain,
    )

    file_formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=pre_chain,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)

    handlers = [console_handler]
    levels = [console_level]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)
        levels.append(file_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(levels))

    # Iterate over a copy, removing while iterating skips handlers
    for hdlr in list(root_logger.handlers):
        root_logger.removeHandler(hdlr)

    for handler in handlers:
        root_logger.addHandler(handler)

    return structlog.get_logger()


def get_logger(name: str = None):
    """
    Get a structured logger instance.

    Args:
        name: Logger name

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
