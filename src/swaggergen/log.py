"""structlog setup shared by the CLI and library callers."""

import logging
import sys

import structlog
from structlog.types import Processor

_PROCESSORS: list[Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.JSONRenderer(),
]

_CONFIGURED = False


def configure_logging(debug: bool = False) -> None:
    """Route structlog and stdlib logging to stderr as JSON lines.

    Idempotent: only the first call has an effect.
    """
    global _CONFIGURED

    if _CONFIGURED:
        return

    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=_PROCESSORS,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
