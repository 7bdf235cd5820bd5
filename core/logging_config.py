# core/logging_config.py
"""Configure Proofline logging sinks and formatting.

This module configures:
- Standard library logging handlers (console and optional rotating file).
- Rich console integration via `RichHandler`.
- Baseline log level overrides for noisy third-party libraries.

Notes:
    This module performs side-effectful logger configuration and should be
    called once at process startup via `setup_proofline_logging()`.
"""

import logging as stdlib_logging
import logging.handlers
import os

import structlog
from rich.logging import RichHandler

import config
from config import rich_formatter, simple_formatter
from ui.rich_display import RichDisplayManager


def setup_proofline_logging() -> None:
    """Set up Proofline logging handlers and formatting.

    This configures:
    - Console logging in simple mode.
    - Rotating file logging when a log file is configured.
    - Rich console output when enabled.
    """
    root_logger = stdlib_logging.getLogger()
    root_logger.setLevel(config.LOG_LEVEL_STR)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if config.SIMPLE_LOGGING_MODE:
        stream_handler = stdlib_logging.StreamHandler()
        stream_handler.setLevel(config.LOG_LEVEL_STR)
        stream_handler.setFormatter(simple_formatter)
        root_logger.addHandler(stream_handler)
        root_logger.info("Simple logging mode enabled: console only.")
    else:
        if config.LOG_FILE:
            try:
                log_path = os.path.join(config.DATA_DIR, config.LOG_FILE)
                os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
                file_handler = stdlib_logging.handlers.RotatingFileHandler(
                    log_path,
                    maxBytes=10 * 1024 * 1024,
                    backupCount=5,
                    mode="a",
                    encoding="utf-8",
                )
                file_handler.setLevel(config.LOG_LEVEL_STR)
                file_handler.setFormatter(simple_formatter)
                root_logger.addHandler(file_handler)
                root_logger.info(f"File logging enabled. Log file: {log_path}")
            except OSError as e:
                root_logger.error(
                    f"Failed to configure file logging: {e}. Logging to console only.",
                    exc_info=True,
                )

        if config.ENABLE_RICH_PROGRESS:
            rich_handler = RichHandler(
                level=config.LOG_LEVEL_STR,
                rich_tracebacks=True,
                show_path=False,
                markup=True,
                show_time=False,  # Timestamp already in our formatter
                show_level=False,  # Level already in our formatter
                console=RichDisplayManager.get_shared_console(),
            )
            rich_handler.setFormatter(rich_formatter)
            root_logger.addHandler(rich_handler)
        else:
            stream_handler = stdlib_logging.StreamHandler()
            stream_handler.setLevel(config.LOG_LEVEL_STR)
            stream_handler.setFormatter(simple_formatter)
            root_logger.addHandler(stream_handler)

    stdlib_logging.getLogger("httpx").setLevel(stdlib_logging.WARNING)
    stdlib_logging.getLogger("httpcore").setLevel(stdlib_logging.WARNING)

    structlog.get_logger().debug(
        f"Proofline logging setup complete. Application Log Level: {stdlib_logging.getLevelName(config.LOG_LEVEL_STR)}."
    )
