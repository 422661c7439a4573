"""Logging for the ``ledger_ingest`` package.

Library modules call ``get_logger("ledger_ingest.<module>")`` and never attach
handlers. The package logger carries a ``NullHandler`` until an entrypoint
(the CLI) calls :func:`configure_logging` with the level it resolved through
:class:`~ledger_ingest.settings.IngestSettings`.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

PACKAGE_LOGGER = "ledger_ingest"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_handler: logging.Handler | None = None

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def parse_level(value: int | str) -> int:
    """Resolve ``"debug"``, ``"INFO"``, ``"10"`` or ``10`` to a numeric level.

    Unknown names raise ``ValueError`` so a typo in configuration is reported
    instead of silently logging at the default level.
    """

    if isinstance(value, int):
        return value
    text = value.strip().upper()
    if text.isdigit():
        return int(text)
    numeric = logging.getLevelNamesMapping().get(text)
    if numeric is None:
        raise ValueError(f"Unknown log level: {value!r}")
    return numeric


def configure_logging(
    level: int | str = logging.INFO,
    *,
    stream: IO[str] | None = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Handler:
    """Send package records at ``level`` and above to ``stream`` (stderr).

    Calling again replaces the handler installed by the previous call, so the
    package logger never has more than one.
    """

    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    resolved = parse_level(level)

    for h in list(logger.handlers):
        if h is _handler or isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["PACKAGE_LOGGER", "configure_logging", "get_logger", "parse_level"]
