"""
Logging setup for the Gestalt Coach server.

Everything the orchestrator, the ElevenLabs transport and the UI server log goes
through the ``gestalt_coach`` logger. It writes to stdout and, when the log
directory is writable, to a size-rotated file.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from coach.config.constants import LOGGER_NAME

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE = LOG_DIR / "gestalt_coach.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# Chatty client libraries stay at WARNING unless the app runs at DEBUG
LIBRARY_LOGGERS = ("websockets", "urllib3")


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Set up the ``gestalt_coach`` logger.

    Safe to call more than once: handlers from an earlier call are replaced, so
    the launcher can reapply the level chosen on the command line.

    Args:
        level: Level name such as ``"DEBUG"``; defaults to the LOG_LEVEL env var

    Returns:
        logging.Logger: The application logger
    """
    resolved = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    try:
        LOG_DIR.mkdir(exist_ok=True)
        file_handler = RotatingFileHandler(
            LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"File logging disabled, {LOG_DIR} is not writable: {e}")

    library_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    # Records are handled here only; uvicorn configures the root logger itself
    logger.propagate = False

    logger.debug(f"Logging configured at {logging.getLevelName(resolved)}")
    return logger
