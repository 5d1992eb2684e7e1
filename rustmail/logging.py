"""Logging for the ``rustmail`` command.

Everything is written to stderr through structlog: stdout of ``rustmail
check`` is the unseen count and nothing else.  Verbosity follows the ``-v``
count:

* none: INFO (one line per check, plus warnings)
* ``-v``: DEBUG (per-message events, retries)
* ``-vv``: DEBUG plus the raw IMAP exchange from :mod:`imaplib`

``--json-logs`` switches to one JSON object per line with UTC timestamps,
for running under cron or a service manager.
"""

from __future__ import annotations

import imaplib
import logging
import sys

import structlog

TRACE = 2
IMAP_DEBUG_LEVEL = 4


def level_for_verbosity(verbose: int) -> str:
    """Map the number of ``-v`` flags to a log level name."""
    return "INFO" if verbose <= 0 else "DEBUG"


def _pre_chain(json: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
    ]
    if json:
        processors += [
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
    else:
        # ConsoleRenderer prints exc_info itself.
        processors.append(structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False))
    return processors


def setup_logging(*, json: bool = False, level: str = "INFO", verbose: int = 0) -> None:
    """Point structlog and the root logger at stderr.

    Safe to call more than once; each call replaces the root handlers.
    *verbose* at :data:`TRACE` or above also turns on imaplib's protocol
    trace.
    """
    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *_pre_chain(json),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    imaplib.Debug = IMAP_DEBUG_LEVEL if verbose >= TRACE else 0
