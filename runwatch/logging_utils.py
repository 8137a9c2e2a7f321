import logging
import os
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "runwatch.log"


def get_logger(name: str) -> logging.Logger:
    """
    Console logger, plus a daily rotating file when RUNWATCH_LOG_DIR is set.
    """
    logger = logging.getLogger(name)

    # Initialise once per logger
    if not logger.handlers:
        level = os.environ.get("RUNWATCH_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

        formatter = logging.Formatter(LOG_FORMAT)

        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        log_dir = os.environ.get("RUNWATCH_LOG_DIR")
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            fh = TimedRotatingFileHandler(
                filename=os.path.join(log_dir, LOG_FILE_NAME),
                when="midnight",
                interval=1,
                backupCount=30,
                encoding="utf-8",
            )
            fh.suffix = "%Y-%m-%d"
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    return logger
