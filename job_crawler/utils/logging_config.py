"""Rotating file + console logging setup."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty third-party loggers capped at WARNING unless running verbose
NOISY_LOGGERS = ("urllib3", "sqlalchemy.engine")


def setup_logging(
    log_dir: str | None = "logs",
    level: int = logging.INFO,
    verbose: bool = False,
) -> logging.Logger:
    """Configure crawler logging with an optional rotating file and console output."""
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger("job_crawler")
    logger.setLevel(level)

    # Re-init must not stack handlers
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # 5MB per file, keep 3 backups
        file_handler = RotatingFileHandler(
            log_path / "job_crawler.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger
