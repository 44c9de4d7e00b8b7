import logging
import sys

import structlog


def setup_logging(env: str, verbose: bool = False) -> None:
    """
    Configure structlog based on environment and verbosity.
    """
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
    ]

    if env in ("local", "development"):
        # Development: Colored Console
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # Production: JSON
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure standard logging to redirect to structlog
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if verbose else logging.INFO,
        force=True,
    )

    # --verbose is for per-event simulator lines only
    for name in ("aiohttp", "asyncio"):
        logging.getLogger(name).setLevel(logging.INFO)
