"""
Logging setup shared by the FastAPI app and the serverless function.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_configured = False


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger once per process.
    Console output always; a rotating file as well when ``log_file`` is set.
    """
    global _configured
    if _configured:
        logging.getLogger().setLevel(level)
        return

    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(
            RotatingFileHandler(
                filename=log_file,
                maxBytes=5 * 1024 * 1024,  # 5 MB
                backupCount=5,
                encoding="utf-8",
            )
        )

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
    _configured = True
    logging.getLogger(__name__).debug("Logging configured (level=%s, file=%s)", level, log_file)
