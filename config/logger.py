import logging
import os
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_FILE = "recovery.log"

logger = logging.getLogger("PriceRecovery")


def setup_logging(log_dir="logs", level=logging.INFO, keep_days=7):
    """
    Console + one log file per day under `log_dir`.

    Handlers from an earlier call are replaced, not stacked.
    """
    os.makedirs(log_dir, exist_ok=True)

    # recovery.log rolls over to recovery.log.YYYY-MM-DD at midnight UTC
    file_handler = TimedRotatingFileHandler(
        os.path.join(log_dir, LOG_FILE),
        when="midnight",
        backupCount=keep_days,
        encoding='utf-8',
        utc=True,
    )

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[file_handler, logging.StreamHandler()],
        force=True,
    )
    # aiohttp is chatty at INFO about every connection
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    return logger
