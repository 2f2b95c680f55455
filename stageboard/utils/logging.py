"""
Logging setup for the CLI and the API server.

Everything comes from ``Settings``: ``LOG_LEVEL``, ``ENVIRONMENT``,
``LOG_TO_FILE`` and ``LOG_DIR``. The CLI can override the level and the file
switch with ``--verbose`` and ``--log-file/--no-log-file``.
"""
from rich.logging import RichHandler
import logging
from datetime import datetime
from typing import List, Optional

from .config import SETTINGS, Settings
from .exceptions import sanitize_log_message

FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'

# SDK and HTTP client loggers that report every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")


def get_log_level(settings: Optional[Settings] = None) -> int:
    """Numeric level for ``settings.log_level``; INFO when the name is unknown."""
    settings = settings or SETTINGS
    level = logging.getLevelName(settings.log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def is_production(settings: Optional[Settings] = None) -> bool:
    settings = settings or SETTINGS
    return settings.environment.lower() == "production"


class SanitizingFormatter(logging.Formatter):
    """Masks API keys and escapes newlines in the rendered line, leaving the record untouched."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        return sanitize_log_message(super().formatMessage(record))


def _file_handler(settings: Settings, level: int) -> logging.Handler:
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = settings.log_dir / f"stageboard_{settings.environment.lower()}_{stamp}.log"
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setLevel(level)
    handler.setFormatter(SanitizingFormatter(FILE_FORMAT))
    return handler


def setup_logging(
    settings: Optional[Settings] = None,
    level: Optional[int] = None,
    log_file: Optional[bool] = None
) -> None:
    """
    Configure the root logger.

    Args:
        settings: Logging settings; the global settings when None.
        level: Overrides ``LOG_LEVEL`` (the CLI passes DEBUG for --verbose).
        log_file: Overrides ``LOG_TO_FILE``.
    """
    settings = settings or SETTINGS
    level = get_log_level(settings) if level is None else level
    log_file = settings.log_to_file if log_file is None else log_file

    # Production keeps the console to warnings; the file still gets ``level``
    console_level = logging.WARNING if is_production(settings) else level
    handlers: List[logging.Handler] = [RichHandler(rich_tracebacks=True, level=console_level)]
    if log_file:
        handlers.append(_file_handler(settings, level))

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
