"""Setup the logger functionality."""

import logging

from rich.console import Console
from rich.highlighter import NullHighlighter
from rich.logging import RichHandler

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger(__name__)


def _get_log_level_int(level: str | int) -> int:
    """Get the log level as an int."""
    if isinstance(level, int):
        return level

    level = level.strip().upper()
    if level not in LOG_LEVELS:
        logger.warning("Invalid logging level '%s', defaulting to 'INFO'.", level)
        return logging.INFO
    return getattr(logging, level)


def setup_logger(level: str | int = "INFO", in_logger: logging.Logger | str | None = None) -> None:
    """Attach a rich console handler and set levels; call once from an entry point."""
    if isinstance(in_logger, str):
        in_logger = logging.getLogger(in_logger)
    if not in_logger:
        in_logger = logging.getLogger()

    if not any(isinstance(handler, RichHandler) for handler in in_logger.handlers):
        console = Console(stderr=True)
        in_logger.addHandler(RichHandler(
            console=console,
            show_time=False,
            rich_tracebacks=True,
            highlighter=NullHighlighter(),
        ))

    level_int = _get_log_level_int(level)
    in_logger.setLevel(level_int)

    # httpx logs every request at INFO
    http_level = logging.DEBUG if level_int <= logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("httpcore").setLevel(max(http_level, logging.INFO))

    logger.debug("Logger configuration set!")
