import logging
import logging.handlers
from typing import Optional

_LOGGER_NAME = "juliamotion"
_LOG_FORMAT = "%(asctime)s.%(msecs)03dZ %(threadName)s %(levelname)s %(name)s - %(message)s"


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def configure_root_logging(
    *,
    level: int = logging.INFO,
    console: bool = True,
    log_file: Optional[str] = "render.log",
    rotate_bytes: int = 5 * 1024 * 1024,
    rotate_count: int = 5,
) -> logging.Logger:
    """Attach console and rotating file handlers to the package logger.

    Render threads log through the same logger, so no queue is needed.
    """
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    handlers = []
    if console:
        handlers.append(logging.StreamHandler())
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=rotate_bytes, backupCount=rotate_count, encoding="utf-8"
        ))
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(fmt)
        logger.addHandler(h)
    return logger


def shutdown_logging() -> None:
    logger = get_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
