import logging
import sys
from typing import Any, Callable, Optional

from autostream.settings import settings

LOGGER_NAME = "autostream"

# (event, detail) -> None, accepted by every core component
LogCallback = Callable[[str, Any], None]

logger = logging.getLogger(LOGGER_NAME)


def setup_logging(level: Optional[int] = None) -> None:
    """Configure the root AutoStream logger once."""
    if level is None:
        level = logging.DEBUG if settings.debug else logging.INFO
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def make_log_callback(target: logging.Logger = logger, prefix: str = "") -> LogCallback:
    """Adapt a logging.Logger to the ``log(event, detail)`` callback shape."""
    def _log(event: str, detail: Any = None) -> None:
        if detail is None:
            target.debug("%s%s", prefix, event)
        else:
            target.debug("%s%s: %s", prefix, event, detail)
    return _log


def emit(log: Optional[LogCallback], event: str, detail: Any = None) -> None:
    if log is None:
        return
    log(event, detail)
