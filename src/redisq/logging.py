import logging
import os

import structlog

DEBUG_ENV = "REDISQ_DEBUG"


def debug_enabled() -> bool:
    """Read the ``REDISQ_DEBUG`` switch from the environment."""
    return os.environ.get(DEBUG_ENV, "").strip().lower() not in ("", "0", "false", "no")


def setup_logging(debug: bool | None = None) -> None:
    """
    Configure structlog on top of the stdlib ``redisq`` logger.

    Parameters
    ----------
    debug : bool | None
        Force debug output on or off; ``None`` reads ``REDISQ_DEBUG``.
    """
    debug = debug_enabled() if debug is None else debug
    logging.getLogger("redisq").setLevel(logging.DEBUG if debug else logging.WARNING)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
