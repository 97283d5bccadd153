# guestpost/core/logging_config.py
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_dir: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    root = logging.getLogger()
    if getattr(root, "_guestpost_configured", False):
        return root

    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(os.path.join(log_dir, "backend.log"), maxBytes=5 * 1024 * 1024, backupCount=5)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root._guestpost_configured = True
    return root
