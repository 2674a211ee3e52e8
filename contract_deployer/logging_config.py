"""
Logging for the API and the CLI.

Everything goes through stdlib logging (core modules use
``logging.getLogger``) and is rendered by structlog. Deployment runs bind
``request_id`` and ``network`` as contextvars; those fields are always
rendered, so every line from a run can be traced back to its request.
"""

import logging
import sys
from typing import IO, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from .config import settings

DEPLOYMENT_FIELDS = ("request_id", "network")

# Receipt polling and probing are chatty at the transport level
NOISY_LOGGERS = ("httpcore", "httpx", "uvicorn.access")


def tag_deployment(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Prefix the console message with the bound deployment context."""
    context = [str(event_dict.pop(key)) for key in DEPLOYMENT_FIELDS if key in event_dict]
    if context:
        event_dict["event"] = f"[{' '.join(context)}] {event_dict.get('event', '')}"
    return event_dict


def build_renderer(log_format: str) -> Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Route all logging to ``stream`` (stdout by default) and return the handler.

    ``log_level`` and ``log_format`` default to ``settings``. The CLI passes
    stderr so its own output on stdout stays clean.
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    log_format = log_format or settings.log_format

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "console":
        pre_chain.append(tag_deployment)
    else:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                build_renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
