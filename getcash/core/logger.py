import logging
from logging.handlers import TimedRotatingFileHandler
import os
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

def setup_logger(name: str = "getcash", log_dir: Optional[str] = None, level: Optional[str] = None):
    """Service logger: daily rotated file (30 kept) plus console.

    Calling it again for the same name returns the configured logger
    without stacking handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))
    if logger.handlers:
        return logger

    log_dir = log_dir or settings.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = TimedRotatingFileHandler(
        filename=os.path.join(log_dir, f"{name}.log"),
        when="midnight",
        backupCount=30,
        encoding="utf-8"
    )
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger

logger = setup_logger()
