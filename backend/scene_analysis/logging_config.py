import logging
from typing import Optional

from scene_analysis.config import get_settings

LOG_FORMAT = "[{asctime}|{filename}:{funcName}:{lineno:d}]{levelname}  {message}"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Install a single console handler on the root logger.

    Called by entry points only; library modules just use logging.getLogger(__name__).
    """
    if level is None:
        level = get_settings().app.log_level
    logging_level = _LEVELS.get(level.lower(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(logging_level)

    formatter = logging.Formatter(LOG_FORMAT, style="{", datefmt="%H:%M:%S")
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.addHandler(console_handler)

    return logger
