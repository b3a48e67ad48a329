import logging
import sys
from typing import Optional

from studyhub.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger("studyhub")
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
    root.propagate = False
    _configured = True


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Returns a logger living under the "studyhub" hierarchy.

    Parameters:
        name (str): Usually the calling module's __name__.
        level (str, optional): Level for this logger only, e.g. "INFO".
            Defaults to LOG_LEVEL inherited from the "studyhub" logger.

    Returns:
        logging.Logger: The configured logger.
    """
    _configure_root()
    if not name.startswith("studyhub"):
        name = f"studyhub.{name}"
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(level.upper())
    return logger
