"""
Palette Service Logging
loguru sink setup and per-run request context.

Every record emitted inside ``request_context`` carries the run's
``request_id`` and ``backend``, including records from backend code running
in the threadpool.
"""
import sys
from contextlib import contextmanager

from loguru import logger

from palette_service.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[request_id]} | {message} | {extra}"

_configured = False


def configure_logging(level: str = None):
    """Replace loguru's default sink with the service's stdout format."""
    global _configured
    logger.remove()
    # Records logged outside a pipeline run still need a request_id to format.
    logger.configure(extra={"request_id": "-"})
    logger.add(sys.stdout, format=LOG_FORMAT, level=level or config.LOG_LEVEL)
    _configured = True


def get_logger():
    """Return the configured loguru logger."""
    if not _configured:
        configure_logging()
    return logger


@contextmanager
def request_context(request_id: str, **fields):
    """Bind ``request_id`` (and any extra fields) to everything logged in the block."""
    with logger.contextualize(request_id=request_id, **fields):
        yield
