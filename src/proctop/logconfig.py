"""Structlog configuration for proctop.

Console output would corrupt the full-screen display, so log events go
either to a JSON Lines file or nowhere.
"""

import logging
import logging.handlers
from pathlib import Path

import structlog

LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 2


def configure(log_path: Path | None = None, level: int = logging.INFO) -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        log_path: JSON Lines log file. Default: discard log output.
        level: Minimum level written to the file.
    """
    stdlib_root = logging.getLogger()
    stdlib_root.setLevel(level)
    stdlib_root.handlers.clear()

    if log_path is None:
        stdlib_root.addHandler(logging.NullHandler())
    else:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=[
                    structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
                    structlog.processors.add_log_level,
                ],
            )
        )
        stdlib_root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
