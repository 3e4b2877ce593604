# utils/logger.py
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# libraries whose INFO chatter drowns out the dashboard's own lines
NOISY_LOGGERS = ("websockets", "aiohttp", "httpx", "telegram", "asyncio")


def setup_logger(name: str,
                 level: Union[str, int] = "INFO",
                 log_file: Optional[str] = None,
                 to_console: bool = True,
                 max_mb: int = 5,
                 backups: int = 5) -> logging.Logger:
    """
    Create/get a logger with console and, when ``log_file`` is given, rotating-file handlers.

    The file path and level normally come from ``load_configuration()``
    (``LOG_FILE`` / ``LOG_LEVEL``). Re-using the same name returns the
    already configured logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = []
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(
            log_file,
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backups,
            encoding="utf-8",
        ))
    if to_console:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        logger.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
