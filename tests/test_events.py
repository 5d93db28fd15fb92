import logging
import sys
import unittest
from logging.handlers import SysLogHandler
from pathlib import Path
from unittest import mock

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from vaultbackup.common.events import (
    EVENT_LOGGER_NAME,
    EventId,
    EventReporter,
    build_host_handler,
    create_reporter,
)


class RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class EventReporterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.handler = RecordingHandler()
        self.event_logger = logging.getLogger("vaultbackup.events.test.reporter")
        self.event_logger.propagate = False
        self.event_logger.addHandler(self.handler)

    def tearDown(self) -> None:
        self.event_logger.removeHandler(self.handler)

    def test_info_event_carries_numeric_id(self) -> None:
        reporter = EventReporter(self.event_logger)

        reporter.info(EventId.BACKUP_SUCCESS, "saved node-raft.202435_789.snap")

        record = self.handler.records[0]
        self.assertEqual(1000, record.event_id)
        self.assertEqual(logging.INFO, record.levelno)
        self.assertEqual("saved node-raft.202435_789.snap", record.getMessage())

    def test_error_event_uses_failure_id(self) -> None:
        reporter = EventReporter(self.event_logger)

        event = reporter.error("boom")

        self.assertEqual(EventId.RUN_FAILED, event.event_id)
        self.assertEqual("error", event.severity)
        self.assertEqual(1100, self.handler.records[0].event_id)
        self.assertEqual(logging.ERROR, self.handler.records[0].levelno)

    def test_disabled_reporter_writes_nothing(self) -> None:
        reporter = EventReporter(self.event_logger, enabled=False)

        reporter.info(EventId.PRUNE_SKIPPED, "skipped")
        reporter.error("boom")

        self.assertEqual([], self.handler.records)
        self.assertEqual([], reporter.events)

    def test_event_ids_are_fixed(self) -> None:
        self.assertEqual(
            {"BACKUP_SUCCESS": 1000, "RENEW_SUCCESS": 1001, "PRUNE_SUCCESS": 1002, "PRUNE_SKIPPED": 1003, "RUN_FAILED": 1100},
            {member.name: member.value for member in EventId},
        )


class HostHandlerTests(unittest.TestCase):
    def tearDown(self) -> None:
        event_logger = logging.getLogger(EVENT_LOGGER_NAME)
        for handler in list(event_logger.handlers):
            event_logger.removeHandler(handler)
            handler.close()
        event_logger.setLevel(logging.NOTSET)

    @unittest.skipIf(sys.platform == "win32", "syslog handler is used off Windows")
    def test_syslog_handler_is_tagged_with_source(self) -> None:
        with mock.patch("vaultbackup.common.events._syslog_address", return_value=("localhost", 514)):
            handler = build_host_handler("Application", "VaultRaftBackup")
        try:
            self.assertIsInstance(handler, SysLogHandler)
            self.assertEqual("VaultRaftBackup: ", handler.ident)
            record = logging.LogRecord("x", logging.INFO, __file__, 1, "saved", None, None)
            record.event_id = 1000
            self.assertEqual("event_id=1000 saved", handler.format(record))
        finally:
            handler.close()

    def test_create_reporter_replaces_previous_host_handler(self) -> None:
        with mock.patch("vaultbackup.common.events.build_host_handler", side_effect=lambda c, s: RecordingHandler()):
            create_reporter("Application", "VaultRaftBackup")
            reporter = create_reporter("Application", "VaultRaftBackup")

        event_logger = logging.getLogger(EVENT_LOGGER_NAME)
        host_handlers = [h for h in event_logger.handlers if getattr(h, "_vaultbackup_host", False)]
        self.assertEqual(1, len(host_handlers))

        reporter.info(EventId.RENEW_SUCCESS, "renewed")
        self.assertEqual(1001, host_handlers[0].records[0].event_id)

    def test_host_events_ignore_a_quieter_application_level(self) -> None:
        app_logger = logging.getLogger("vaultbackup")
        previous = app_logger.level
        app_logger.setLevel(logging.WARNING)
        self.addCleanup(app_logger.setLevel, previous)
        host = RecordingHandler()

        with mock.patch("vaultbackup.common.events.build_host_handler", return_value=host):
            reporter = create_reporter("Application", "VaultRaftBackup")
        reporter.info(EventId.PRUNE_SKIPPED, "prune disabled")

        self.assertEqual([1003], [record.event_id for record in host.records])

    def test_unavailable_host_log_still_returns_reporter(self) -> None:
        with mock.patch("vaultbackup.common.events.build_host_handler", side_effect=OSError("no syslog")):
            reporter = create_reporter("Application", "VaultRaftBackup")

        self.assertTrue(reporter.enabled)

    def test_dry_run_reporter_is_disabled(self) -> None:
        reporter = create_reporter("Application", "VaultRaftBackup", enabled=False)

        self.assertFalse(reporter.enabled)


if __name__ == "__main__":
    unittest.main()
