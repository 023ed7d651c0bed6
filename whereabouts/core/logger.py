"""Logger configuration for the whereabouts engine.

Messages carry a "[PREFIX]" naming the layer that logged them. Structured
context (precondition code, details, quarter id) travels in the record's
extra dict via logger.bind() and is appended to the line when present.
"""

import sys
from pathlib import Path

from loguru import logger

_CONSOLE_LINE = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_LINE = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def console_format(record) -> str:
    """Console line, with bound context appended when the record has any."""
    if record["extra"]:
        return _CONSOLE_LINE + " | <yellow>{extra}</yellow>\n{exception}"
    return _CONSOLE_LINE + "\n{exception}"


def file_format(record) -> str:
    """Plain-text line for the rotating file sink."""
    if record["extra"]:
        return _FILE_LINE + " | {extra}\n{exception}"
    return _FILE_LINE + "\n{exception}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru with a console sink and an optional rotating file sink.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If None, only console logging.
        rotation: When the file sink rolls over (e.g. "10 MB", "1 day")
        retention: How long rolled files are kept (e.g. "7 days")
    """
    logger.remove()
    logger.add(sys.stderr, format=console_format, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=file_format,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"[WHEREABOUTS] Logging at {level}" + (f", file {log_file} (rotation {rotation}, retention {retention})" if log_file else ""))
