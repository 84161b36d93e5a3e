from __future__ import annotations

import logging
from typing import Any

import structlog


def configure_logging(debug: bool = False) -> None:
    """Configure structured logging for the journey service."""

    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(format="%(message)s", level=level)

    renderers: list[Any] = (
        [structlog.dev.ConsoleRenderer()]
        if debug
        else [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def bind_journey(journey_id: str, step: str) -> None:
    """Attach the journey id and step to every log line of this request."""

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(journey_id=journey_id, step=step)


def get_logger(*args: Any, **kwargs: Any) -> structlog.BoundLogger:
    return structlog.get_logger(*args, **kwargs)
