"""Host event log reporting.

Events go through a dedicated ``vaultbackup.events`` logger. On Windows the
host sink is the NT event log (the source must be registered once by an
administrator, which ``NTEventLogHandler`` does on first use when allowed).
Elsewhere events are sent to syslog tagged with the source name. Each record
carries a fixed numeric ``event_id``. Delivery does not depend on the
diagnostic log level.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import IntEnum
from logging.handlers import NTEventLogHandler, SysLogHandler
from pathlib import Path

EVENT_LOGGER_NAME = "vaultbackup.events"
SYSLOG_SOCKETS = (Path("/dev/log"), Path("/var/run/syslog"))

logger = logging.getLogger(__name__)


class EventId(IntEnum):
    """Fixed identifiers written to the host event log."""

    BACKUP_SUCCESS = 1000
    RENEW_SUCCESS = 1001
    PRUNE_SUCCESS = 1002
    PRUNE_SKIPPED = 1003
    RUN_FAILED = 1100


@dataclass(frozen=True, slots=True)
class Event:
    """A single event as it was reported."""

    event_id: EventId
    level: int
    message: str

    @property
    def severity(self) -> str:
        return "error" if self.level >= logging.ERROR else "info"


class WindowsEventLogHandler(NTEventLogHandler):
    """NT event log handler that uses the record's ``event_id`` as event id."""

    def getMessageID(self, record: logging.LogRecord) -> int:  # pragma: no cover - windows only
        return int(getattr(record, "event_id", EventId.RUN_FAILED))


def _syslog_address() -> str | tuple[str, int]:
    for candidate in SYSLOG_SOCKETS:
        if candidate.exists():
            return str(candidate)
    return ("localhost", 514)


def build_host_handler(channel: str, source: str) -> logging.Handler:
    """Create the platform's event log handler for ``source``."""

    if sys.platform == "win32":  # pragma: no cover - windows only
        return WindowsEventLogHandler(appname=source, logtype=channel)

    handler = SysLogHandler(address=_syslog_address(), facility=SysLogHandler.LOG_USER)
    handler.ident = f"{source}: "
    handler.setFormatter(logging.Formatter("event_id=%(event_id)d %(message)s"))
    return handler


class EventReporter:
    """Write fixed-id events to the host event log.

    Disabled reporters (dry runs) only log what they would have written.
    """

    def __init__(self, event_logger: logging.Logger | None = None, enabled: bool = True) -> None:
        self._logger = event_logger or logging.getLogger(EVENT_LOGGER_NAME)
        self.enabled = enabled
        self.events: list[Event] = []

    def info(self, event_id: EventId, message: str) -> Event:
        return self._report(logging.INFO, event_id, message)

    def error(self, message: str, event_id: EventId = EventId.RUN_FAILED) -> Event:
        return self._report(logging.ERROR, event_id, message)

    def _report(self, level: int, event_id: EventId, message: str) -> Event:
        event = Event(event_id=EventId(event_id), level=level, message=message)
        if not self.enabled:
            logger.info("dry-run: would record event id=%d message=%s", event.event_id, message)
            return event

        self._logger.log(level, message, extra={"event_id": int(event.event_id)})
        self.events.append(event)
        return event


def create_reporter(channel: str, source: str, enabled: bool = True) -> EventReporter:
    """Return a reporter wired to the host event log.

    Re-attaching replaces any host handler added by a previous call. The
    events logger is pinned to INFO so a quieter ``logging.level`` in
    ``local.yml`` never drops host events.
    """

    event_logger = logging.getLogger(EVENT_LOGGER_NAME)
    if not enabled:
        return EventReporter(event_logger, enabled=False)

    event_logger.setLevel(logging.INFO)

    for existing in list(event_logger.handlers):
        if getattr(existing, "_vaultbackup_host", False):
            event_logger.removeHandler(existing)
            existing.close()

    try:
        handler = build_host_handler(channel, source)
    except OSError as exc:
        logger.warning('host event log unavailable source=%s reason="%s"', source, exc)
    else:
        handler._vaultbackup_host = True  # type: ignore[attr-defined]
        event_logger.addHandler(handler)

    return EventReporter(event_logger)
