# warmstart/infrastructure/sinks/host_log_handler.py
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

HostSink = Callable[[str, str], None]

# Loggers that carry bootstrap diagnostics.
DEFAULT_LOGGER_NAMES = ('bootstrap', 'core', 'infrastructure')


class HostLogHandler(logging.Handler):
    """Forwards log records to the host's ``(level, message)`` diagnostic sink."""

    def __init__(self, sink: HostSink, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.sink(record.levelname.lower(), self.format(record))
        except Exception:
            self.handleError(record)


def attach_host_sink(
    sink: HostSink,
    level: int = logging.INFO,
    logger_names: Iterable[str] = DEFAULT_LOGGER_NAMES,
    formatter: Optional[logging.Formatter] = None,
) -> HostLogHandler:
    handler = HostLogHandler(sink, level)
    handler.setFormatter(formatter or logging.Formatter('%(message)s'))
    for name in logger_names:
        logging.getLogger(name).addHandler(handler)
    return handler


def detach_host_sink(handler: HostLogHandler, logger_names: Iterable[str] = DEFAULT_LOGGER_NAMES) -> None:
    for name in logger_names:
        logging.getLogger(name).removeHandler(handler)
