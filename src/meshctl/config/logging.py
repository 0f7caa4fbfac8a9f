"""Progress and diagnostic logging for meshctl.

Services report progress ("Verifying prerequisites...", the matching event
summary) through ``logging.getLogger(__name__)``.  structlog renders those
records on stderr, so stdout only ever carries the command result.

Level of the ``meshctl`` logger:

==========================  =========
``-v``                      DEBUG
default                     INFO
``-q`` or ``--json``        WARNING
==========================  =========

``--log-json`` emits one JSON object per record, stamped with time and
logger name.  The console renderer keeps progress lines short.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Libraries that log every request at INFO.
_HTTP_LOGGERS = ("httpx", "httpcore")


def log_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Level for the ``meshctl`` logger; ``verbose`` wins over ``quiet``."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def _pre_chain(log_json: bool) -> list[structlog.types.Processor]:
    chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
    ]
    if log_json:
        chain += [
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
        ]
    chain.append(structlog.processors.UnicodeDecoder())
    return chain


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Route meshctl and structlog records to a single stderr handler.

    Safe to call more than once; each call replaces the previous handler.
    """
    pre_chain = _pre_chain(log_json)

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("meshctl").setLevel(log_level(verbose=verbose, quiet=quiet))
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
