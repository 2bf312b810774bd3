"""
Logging setup shared by the library and its callers.
"""
import logging
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from .config import Settings, get_settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Install handlers on the ``quizstore`` logger.

    Calling it again replaces the handlers instead of stacking them.
    """
    settings = settings or get_settings()
    root = logging.getLogger("quizstore")
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = build_formatter(settings.LOG_FORMAT)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root.addHandler(stream)
    if settings.LOG_FILE:
        file_handler = logging.FileHandler(settings.LOG_FILE, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    return root
