"""
Logging setup shared by the API and the seed script.
"""
import logging
import sys

from court_scheduling.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = settings.LOG_LEVEL) -> logging.Logger:
    root = logging.getLogger()
    if not any(getattr(h, "_court_scheduling", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._court_scheduling = True
        root.addHandler(handler)
    root.setLevel(level.upper())
    return logging.getLogger("court_scheduling")


logger = configure_logging()
