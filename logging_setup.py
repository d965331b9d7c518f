"""Logger factory shared by the app modules.

Each named logger gets a single stream handler; the level comes from
``LOG_LEVEL`` (see ``config.Config``) unless ``configure`` was called.
"""
import logging
import threading

from config import Config

_LOCK = threading.Lock()
_LEVEL = Config.LOG_LEVEL
_FORMAT = "[catalog] %(asctime)s %(levelname)s %(name)s %(message)s"


def configure(level_name):
    """Set the level for loggers created from now on, and for existing ones."""
    global _LEVEL
    with _LOCK:
        _LEVEL = (level_name or "INFO").upper()
        level = getattr(logging, _LEVEL, logging.INFO)
        for name in list(logging.root.manager.loggerDict):
            if name.startswith("catalog"):
                logging.getLogger(name).setLevel(level)


def get_logger(name):
    full_name = f"catalog.{name}"
    with _LOCK:
        logger = logging.getLogger(full_name)
        logger.setLevel(getattr(logging, _LEVEL, logging.INFO))
        if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(handler)
        logger.propagate = False
        return logger
